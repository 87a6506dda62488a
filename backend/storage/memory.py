"""
Stockage en mémoire (un seul processus, aucune persistance).

MemStorage est construit une fois au démarrage (lifespan) puis injecté dans les
routes via backend.storage.get_storage. Identifiants auto-incrémentés par table.
"""
import logging
import threading
from datetime import date, datetime, timedelta, timezone
from itertools import count
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SERVICES: List[Dict[str, Any]] = [
    {
        "name": "Web Design",
        "nameEs": "Diseño Web",
        "description": "Custom responsive websites that attract and convert visitors with modern designs.",
        "descriptionEs": "Sitios web responsivos personalizados que atraen y convierten visitantes con diseños modernos.",
        "price": 399,
        "features": ["Responsive design", "SEO optimization", "Modern UI/UX"],
        "featuresEs": ["Diseño responsivo", "Optimización SEO", "UI/UX moderno"],
        "icon": "laptop-code",
        "sortOrder": 1,
    },
    {
        "name": "Automation",
        "nameEs": "Automatización",
        "description": "Streamline your business processes with AI-powered automation solutions.",
        "descriptionEs": "Optimice sus procesos de negocio con soluciones de automatización impulsadas por IA.",
        "price": 899,
        "features": ["Workflow automation", "AI integrations", "Business analytics"],
        "featuresEs": ["Automatización de flujos", "Integraciones con IA", "Análisis de negocio"],
        "icon": "robot",
        "sortOrder": 2,
    },
    {
        "name": "Branding",
        "nameEs": "Branding",
        "description": "Create a memorable brand identity that resonates with your target audience.",
        "descriptionEs": "Cree una identidad de marca memorable que resuene con su público objetivo.",
        "price": 799,
        "features": ["Logo design", "Brand strategy", "Marketing materials"],
        "featuresEs": ["Diseño de logo", "Estrategia de marca", "Materiales de marketing"],
        "icon": "paint-brush",
        "sortOrder": 3,
    },
    {
        "name": "Social Media Marketing",
        "nameEs": "Marketing en Redes Sociales",
        "description": "Engage with your audience through strategic social media marketing campaigns on Facebook, Instagram, WhatsApp, and LinkedIn.",
        "descriptionEs": "Conecte con su audiencia a través de campañas estratégicas de marketing en redes sociales en Facebook, Instagram, WhatsApp y LinkedIn.",
        "price": 699,
        "features": ["Facebook marketing", "Instagram content", "WhatsApp campaigns", "LinkedIn strategy"],
        "featuresEs": ["Marketing en Facebook", "Contenido para Instagram", "Campañas en WhatsApp", "Estrategia para LinkedIn"],
        "icon": "share-alt",
        "sortOrder": 4,
    },
    {
        "name": "Accounting",
        "nameEs": "Contabilidad",
        "description": "Professional accounting services to help manage your business finances effectively.",
        "descriptionEs": "Servicios de contabilidad profesionales para ayudar a gestionar las finanzas de su negocio de manera efectiva.",
        "price": 499,
        "features": ["Bookkeeping", "Tax preparation", "Financial reporting", "Business consulting"],
        "featuresEs": ["Teneduría de libros", "Preparación de impuestos", "Informes financieros", "Consultoría empresarial"],
        "icon": "calculator",
        "sortOrder": 5,
    },
]

# (invoiceNumber, description, amount, status, serviceType, échéance en jours depuis aujourd'hui)
DEFAULT_INVOICES = [
    ("INV-2025-001", "Web Design Services - Monthly Maintenance", 99.00, "pending", "Maintenance", 7),
    ("INV-2025-002", "Social Media Management - Mar 2025", 149.00, "pending", "Marketing", 5),
    ("INV-2025-003", "SEO Optimization - Q1 2025", 299.00, "overdue", "SEO", -3),
    ("INV-2025-004", "Content Writing - Blog Posts Feb 2025", 199.00, "paid", "Content", -15),
]

PAYABLE_INVOICE_STATUSES = ("pending", "overdue")

DEFAULT_TESTIMONIALS: List[Dict[str, Any]] = [
    {
        "name": "Sarah Johnson",
        "position": "Fitness Studio Owner",
        "company": "Fit Life Studio",
        "content": "TOBAIS transformed our online presence completely. Our website now perfectly represents our brand, and the automation tools they implemented have saved us countless hours on administrative tasks.",
        "contentEs": "TOBAIS transformó completamente nuestra presencia en línea. Nuestro sitio web ahora representa perfectamente nuestra marca, y las herramientas de automatización que implementaron nos han ahorrado incontables horas en tareas administrativas.",
        "rating": 5,
        "image": "https://images.unsplash.com/photo-1580489944761-15a19d654956?ixlib=rb-4.0.3&auto=format&fit=crop&w=100&q=80",
        "approved": True,
    },
    {
        "name": "Miguel Ramirez",
        "position": "Restaurant Owner",
        "company": "Sabores Auténticos",
        "content": "Working with TOBAIS was a game-changer for our restaurant. Their bilingual website design helped us reach a broader audience, and their online ordering system increased our sales by 40%.",
        "contentEs": "Trabajar con TOBAIS cambió las reglas del juego para nuestro restaurante. Su diseño web bilingüe nos ayudó a llegar a una audiencia más amplia, y su sistema de pedidos en línea aumentó nuestras ventas en un 40%.",
        "rating": 5,
        "image": "https://images.unsplash.com/photo-1566492031773-4f4e44671857?ixlib=rb-4.0.3&auto=format&fit=crop&w=100&q=80",
        "approved": True,
    },
    {
        "name": "Amanda Chen",
        "position": "E-commerce Entrepreneur",
        "company": "StyleBox",
        "content": "The branding package from TOBAIS helped us establish a strong identity in a competitive market. Their attention to detail and strategic approach to our digital presence exceeded our expectations.",
        "contentEs": "El paquete de branding de TOBAIS nos ayudó a establecer una identidad fuerte en un mercado competitivo. Su atención al detalle y enfoque estratégico de nuestra presencia digital superó nuestras expectativas.",
        "rating": 4.5,
        "image": "https://images.unsplash.com/photo-1573497019940-1c28c88b4f3e?ixlib=rb-4.0.3&auto=format&fit=crop&w=100&q=80",
        "approved": True,
    },
]


class DuplicateUser(ValueError):
    """Nom d'utilisateur ou email déjà pris (contrôle atomique sous verrou)."""


class MemStorage:
    """
    Dépôt en mémoire: utilisateurs, catalogue de services, factures, contacts,
    témoignages, projets clients.
    Un verrou protège écritures et parcours car les routes synchrones tournent
    dans un threadpool.
    """

    def __init__(self, *, seed: bool = True, today: Optional[date] = None):
        self._lock = threading.Lock()
        self._users: Dict[int, Dict[str, Any]] = {}
        self._services: Dict[int, Dict[str, Any]] = {}
        self._invoices: Dict[int, Dict[str, Any]] = {}
        self._contacts: Dict[int, Dict[str, Any]] = {}
        self._testimonials: Dict[int, Dict[str, Any]] = {}
        self._projects: Dict[int, Dict[str, Any]] = {}
        self._user_ids = count(1)
        self._service_ids = count(1)
        self._invoice_ids = count(1)
        self._contact_ids = count(1)
        self._testimonial_ids = count(1)
        self._project_ids = count(1)
        if seed:
            self._seed_services()
            self._seed_invoices(today or date.today())
            self._seed_testimonials()

    def _snapshot(self, table: Dict[int, Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in table.values()]

    def _get(self, table: Dict[int, Dict[str, Any]], record_id: Any) -> Optional[Dict[str, Any]]:
        try:
            key = int(record_id)
        except (TypeError, ValueError):
            return None
        with self._lock:
            record = table.get(key)
            return dict(record) if record else None

    def _update(self, table: Dict[int, Dict[str, Any]], record_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            key = int(record_id)
        except (TypeError, ValueError):
            return None
        with self._lock:
            record = table.get(key)
            if record is None:
                return None
            record.update({k: v for k, v in data.items() if k != "id"})
            return dict(record)

    # --- Seed ---

    def _seed_services(self) -> None:
        for service in DEFAULT_SERVICES:
            self.create_service_type(dict(service))

    def _seed_invoices(self, today: date) -> None:
        for number, description, amount, status, service_type, due_in in DEFAULT_INVOICES:
            self.create_invoice(
                invoice_number=number,
                description=description,
                amount=amount,
                status=status,
                service_type=service_type,
                due_date=(today + timedelta(days=due_in)).isoformat(),
            )

    def _seed_testimonials(self) -> None:
        for testimonial in DEFAULT_TESTIMONIALS:
            self.create_testimonial(dict(testimonial))

    # --- Utilisateurs ---

    def _find_user(self, field_name: str, value: str) -> Optional[Dict[str, Any]]:
        # appelant: verrou déjà pris
        wanted = (value or "").strip().lower()
        return next((u for u in self._users.values() if (u.get(field_name) or "").lower() == wanted), None)

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        email: str,
        full_name: Optional[str] = None,
        language: str = "en",
        role: str = "user",
    ) -> Dict[str, Any]:
        """
        Crée un utilisateur; unicité username/email vérifiée et insertion faites
        sous le même verrou. Soulève DuplicateUser sinon.
        """
        with self._lock:
            if self._find_user("username", username):
                raise DuplicateUser("Username already exists")
            if self._find_user("email", email):
                raise DuplicateUser("Email already registered")
            user_id = next(self._user_ids)
            user = {
                "id": user_id,
                "username": username,
                "password": password_hash,
                "email": email,
                "fullName": full_name,
                "role": role,
                "language": language,
                "isActive": True,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
            self._users[user_id] = user
            created = dict(user)
        logger.info("storage.create_user id=%s username=%s", user_id, username)
        return created

    def get_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        return self._get(self._users, user_id)

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            user = self._find_user("username", username)
            return dict(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            user = self._find_user("email", email)
            return dict(user) if user else None

    # --- Catalogue de services ---

    def create_service_type(self, service: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            service_id = next(self._service_ids)
            record = {
                "id": service_id,
                "name": service["name"],
                "nameEs": service.get("nameEs"),
                "description": service["description"],
                "descriptionEs": service.get("descriptionEs"),
                "price": service["price"],
                "features": service.get("features"),
                "featuresEs": service.get("featuresEs"),
                "icon": service.get("icon"),
                "sortOrder": service.get("sortOrder") or 0,
            }
            self._services[service_id] = record
            return dict(record)

    def get_service_types(self) -> List[Dict[str, Any]]:
        return sorted(self._snapshot(self._services), key=lambda s: s.get("sortOrder") or 0)

    def get_service_type(self, service_id: Any) -> Optional[Dict[str, Any]]:
        return self._get(self._services, service_id)

    # --- Factures ---

    def create_invoice(
        self,
        *,
        invoice_number: str,
        description: str,
        amount: float,
        status: str,
        service_type: str,
        due_date: str,
    ) -> Dict[str, Any]:
        with self._lock:
            invoice_id = next(self._invoice_ids)
            record = {
                "id": invoice_id,
                "description": description,
                "amount": amount,
                "status": status,
                "dueDate": due_date,
                "serviceType": service_type,
                "invoiceNumber": invoice_number,
            }
            self._invoices[invoice_id] = record
            return dict(record)

    def get_user_invoices(self, user_id: Any) -> List[Dict[str, Any]]:
        """Les factures de démonstration sont communes à tous les comptes clients."""
        return self._snapshot(self._invoices)

    def get_invoices_by_ids(self, ids: Iterable[Any]) -> Dict[int, Dict[str, Any]]:
        found: Dict[int, Dict[str, Any]] = {}
        for raw in ids:
            invoice = self._get(self._invoices, raw)
            if invoice:
                found[invoice["id"]] = invoice
        return found

    # --- Formulaire de contact ---

    def create_contact_submission(
        self,
        *,
        name: str,
        email: str,
        message: str,
        service_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            contact_id = next(self._contact_ids)
            record = {
                "id": contact_id,
                "name": name,
                "email": email,
                "message": message,
                "serviceId": service_id or None,
                "createdAt": datetime.now(timezone.utc).isoformat(),
                "resolved": False,
            }
            self._contacts[contact_id] = record
            created = dict(record)
        logger.info("storage.create_contact id=%s service_id=%s", contact_id, service_id)
        return created

    def get_contact_submissions(self) -> List[Dict[str, Any]]:
        """Plus récentes en premier."""
        return sorted(self._snapshot(self._contacts), key=lambda c: (c["createdAt"], c["id"]), reverse=True)

    def get_contact_submission(self, contact_id: Any) -> Optional[Dict[str, Any]]:
        return self._get(self._contacts, contact_id)

    def update_contact_submission(self, contact_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update(self._contacts, contact_id, data)

    # --- Témoignages ---

    def create_testimonial(self, testimonial: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            testimonial_id = next(self._testimonial_ids)
            rating = testimonial.get("rating")
            record = {
                "id": testimonial_id,
                "name": testimonial["name"],
                "position": testimonial.get("position"),
                "company": testimonial.get("company"),
                "content": testimonial["content"],
                "contentEs": testimonial.get("contentEs"),
                "rating": 5 if rating is None else rating,
                "image": testimonial.get("image"),
                "approved": bool(testimonial.get("approved", False)),
            }
            self._testimonials[testimonial_id] = record
            return dict(record)

    def get_testimonials(self, approved: Optional[bool] = None) -> List[Dict[str, Any]]:
        testimonials = self._snapshot(self._testimonials)
        if approved is not None:
            testimonials = [t for t in testimonials if t["approved"] is approved]
        return testimonials

    def update_testimonial(self, testimonial_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update(self._testimonials, testimonial_id, data)

    # --- Projets clients ---

    def create_project(self, project: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            project_id = next(self._project_ids)
            record = {
                "id": project_id,
                "title": project["title"],
                "titleEs": project.get("titleEs"),
                "description": project["description"],
                "descriptionEs": project.get("descriptionEs"),
                "clientId": project.get("clientId"),
                "status": project.get("status") or "pending",
                "startDate": project.get("startDate"),
                "endDate": project.get("endDate"),
                "image": project.get("image"),
                "featured": bool(project.get("featured", False)),
            }
            self._projects[project_id] = record
            created = dict(record)
        logger.info("storage.create_project id=%s client_id=%s", project_id, record["clientId"])
        return created

    def get_projects(self, featured: Optional[bool] = None) -> List[Dict[str, Any]]:
        projects = self._snapshot(self._projects)
        if featured is not None:
            projects = [p for p in projects if p["featured"] is featured]
        return projects

    def get_project(self, project_id: Any) -> Optional[Dict[str, Any]]:
        return self._get(self._projects, project_id)

    def get_client_projects(self, client_id: Any) -> List[Dict[str, Any]]:
        return [p for p in self._snapshot(self._projects) if p["clientId"] is not None and p["clientId"] == client_id]

    def update_project(self, project_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update(self._projects, project_id, data)

    def close(self) -> None:
        """Arrêt du processus: les données en mémoire sont abandonnées."""
        with self._lock:
            for table in (self._users, self._services, self._invoices, self._contacts, self._testimonials, self._projects):
                table.clear()
