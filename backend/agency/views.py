from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.storage import MemStorage, get_storage
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import require_admin, require_user

# --- API Router (/api): contact, témoignages, projets ---

router = APIRouter(prefix="/api", tags=["Agency API"])


class _Body(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class ContactRequest(_Body):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(min_length=1, max_length=5000)
    service_id: Optional[int] = Field(default=None, alias="serviceId")


class TestimonialRequest(_Body):
    name: str = Field(min_length=1, max_length=200)
    position: Optional[str] = None
    company: Optional[str] = None
    content: str = Field(min_length=1)
    content_es: Optional[str] = Field(default=None, alias="contentEs")
    rating: Optional[float] = Field(default=None, ge=1, le=5)
    image: Optional[str] = None


class ProjectRequest(_Body):
    title: str = Field(min_length=1)
    title_es: Optional[str] = Field(default=None, alias="titleEs")
    description: str = Field(min_length=1)
    description_es: Optional[str] = Field(default=None, alias="descriptionEs")
    client_id: Optional[int] = Field(default=None, alias="clientId")
    status: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    image: Optional[str] = None
    featured: bool = False


@router.post("/contact", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_contact(req: ContactRequest, storage: MemStorage = Depends(get_storage)) -> Dict[str, Any]:
    """Formulaire de contact public; la demande est enregistrée non traitée (resolved=false)."""
    return storage.create_contact_submission(
        name=req.name,
        email=str(req.email),
        message=req.message,
        service_id=req.service_id,
    )


@router.get("/testimonials")
def list_testimonials(storage: MemStorage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """Seuls les témoignages approuvés sont publics."""
    return storage.get_testimonials(approved=True)


@router.post("/testimonials", status_code=201)
def submit_testimonial(
    req: TestimonialRequest,
    user: Dict[str, Any] = Depends(require_user),
    storage: MemStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """
    Témoignage d'un client connecté.
    - Toujours créé non approuvé: invisible dans GET /api/testimonials jusqu'à modération
    """
    data = req.model_dump(by_alias=True)
    data["approved"] = False
    return storage.create_testimonial(data)


@router.get("/projects")
def list_projects(featured: Optional[bool] = None, storage: MemStorage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """Portfolio: ?featured=true pour les projets mis en avant, sans filtre sinon."""
    return storage.get_projects(featured)


@router.get("/user/projects")
def list_user_projects(
    user: Dict[str, Any] = Depends(require_user),
    storage: MemStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Projets du client connecté (tableau de bord)."""
    return storage.get_client_projects(user.get("id"))


@router.post("/projects", status_code=201)
def create_project(
    req: ProjectRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    storage: MemStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Création réservée aux administrateurs (403 sinon, session absente comprise)."""
    return storage.create_project(req.model_dump(by_alias=True))
