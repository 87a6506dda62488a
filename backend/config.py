# backend.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets des fournisseurs de paiement (Stripe, PayPal)
- Choisit l'environnement PayPal (sandbox/live) une seule fois au démarrage
- Expose sécurité cookies/session, CORS/hosts et timeouts HTTP sortants
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

# Environnement d'exécution: APP_ENV prioritaire, NODE_ENV accepté pour les déploiements existants
APP_ENV = _clean_env(os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").lower()
IS_PRODUCTION = APP_ENV == "production"

# Cookies / session
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")
SESSION_COOKIE_NAME = "tobais_session"

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clé secrète serveur + clé publique pour le front
# - VITE_STRIPE_PUBLIC_KEY est accepté pour rester compatible avec le .env du front
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or os.getenv("VITE_STRIPE_PUBLIC_KEY") or "")

# PayPal: identifiants REST (client credentials)
PAYPAL_CLIENT_ID = _clean_env(os.getenv("PAYPAL_CLIENT_ID") or "")
PAYPAL_CLIENT_SECRET = _clean_env(os.getenv("PAYPAL_CLIENT_SECRET") or "")
PAYPAL_PUBLIC_CLIENT_ID = _clean_env(os.getenv("VITE_PAYPAL_CLIENT_ID") or PAYPAL_CLIENT_ID)

# Endpoints PayPal: choisi une fois au démarrage, non reconfigurable à chaud
PAYPAL_SANDBOX_API = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_API = "https://api-m.paypal.com"
PAYPAL_API_BASE = PAYPAL_LIVE_API if IS_PRODUCTION else PAYPAL_SANDBOX_API

# Paiements
PAYMENT_CURRENCY = "USD"
TEST_PAYMENT_AMOUNT = "1.00"
PAYMENT_SUCCESS_PATH = os.getenv("PAYMENT_SUCCESS_PATH", "/payment-success")

# Timeout des appels sortants (Stripe/PayPal)
try:
    HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
except ValueError:
    HTTP_TIMEOUT_SECONDS = 15.0

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
