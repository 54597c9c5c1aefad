"""
assocly-api/api/endpoints.py
Endpoints de l'API (authentification, membres, cotisations, événements, maintenance)

Les erreurs métier (domain.errors) sont converties en réponses HTTP par le
gestionnaire d'exceptions déclaré dans app.py.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.security import OAuth2PasswordRequestForm

from api import auth, schemas
from domain.entities import Member, MemberUpdate, CotisationUpdate, EvenementUpdate
from domain.errors import NotFoundError
from application.services import (
    AuthService, MemberService, CotisationService, EvenementService, MaintenanceService, Page
)
from infrastructure.dependencies import (
    get_auth_service, get_member_service, get_cotisation_service,
    get_evenement_service, get_maintenance_service
)
from config import Config

config = Config()
logger = logging.getLogger(__name__)

router = APIRouter()
auth_router = APIRouter(prefix="/auth", tags=["Authentication"])

admin_router = APIRouter(
    dependencies=[Depends(auth.get_current_admin)]
)


def _page(page: Page, schema) -> dict:
    return {
        "items": [schema.model_validate(item) for item in page.items],
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages
    }


# ============================================================================
# AUTHENTIFICATION
# ============================================================================

@auth_router.post("/token", response_model=schemas.Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Fournit un token JWT en échange de email/mot de passe (formulaire OAuth2,
    le champ username porte l'email)
    """
    member = auth_service.authenticate(form_data.username, form_data.password)
    return {"access_token": auth_service.issue_token(member), "token_type": "bearer"}


@auth_router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    member = auth_service.authenticate(payload.email, payload.password)
    return {
        "access_token": auth_service.issue_token(member),
        "token_type": "bearer",
        "membre": schemas.MembreResponse.model_validate(member)
    }


@auth_router.post("/register", response_model=schemas.MembreResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Inscription libre (rôle MEMBRE)"""
    return auth_service.register(
        nom=payload.nom,
        prenom=payload.prenom,
        email=payload.email,
        password=payload.password,
        telephone=payload.telephone
    )


@auth_router.get("/me", response_model=schemas.MembreResponse)
def get_profile(current_member: Member = Depends(auth.get_current_member)):
    return current_member


@auth_router.put("/change-password", response_model=schemas.MessageResponse)
def change_password(
    payload: schemas.ChangePasswordRequest,
    current_member: Member = Depends(auth.get_current_member),
    auth_service: AuthService = Depends(get_auth_service)
):
    auth_service.change_password(current_member.id, payload.ancien_mot_de_passe, payload.nouveau_mot_de_passe)
    return {"message": "Password changed"}


@auth_router.post("/forgot-password", response_model=schemas.MessageResponse)
def forgot_password(payload: schemas.ForgotPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.forgot_password(payload.email)
    # Même réponse que l'email existe ou non
    return {"message": "If this email is registered, a reset link has been sent"}


@auth_router.post("/reset-password", response_model=schemas.MessageResponse)
def reset_password(payload: schemas.ResetPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.reset_password(payload.token, payload.nouveau_mot_de_passe)
    return {"message": "Password has been reset"}

# ============================================================================
# MEMBRES (administration)
# ============================================================================

@admin_router.post("/membres", response_model=schemas.MembreResponse, status_code=status.HTTP_201_CREATED, tags=["Membres"])
def create_membre(payload: schemas.MembreCreate, member_service: MemberService = Depends(get_member_service)):
    return member_service.create_member(**payload.model_dump())


@admin_router.get("/membres", response_model=schemas.MembrePage, tags=["Membres"])
def list_membres(
    page: int = Query(1, ge=1),
    limit: int = Query(config.default_page_size, ge=1, le=config.max_page_size),
    search: Optional[str] = None,
    statut: Optional[str] = None,
    role: Optional[str] = None,
    member_service: MemberService = Depends(get_member_service)
):
    result = member_service.list_members(page=page, limit=limit, search=search, statut=statut, role=role)
    return _page(result, schemas.MembreResponse)


@admin_router.get("/membres/statistiques", response_model=schemas.MembreStatistics, tags=["Membres"])
def membres_statistics(member_service: MemberService = Depends(get_member_service)):
    return member_service.get_statistics()


@admin_router.get("/membres/{membre_id}", response_model=schemas.MembreResponse, tags=["Membres"])
def get_membre(membre_id: str, member_service: MemberService = Depends(get_member_service)):
    return member_service.get_member(membre_id)


@admin_router.put("/membres/{membre_id}", response_model=schemas.MembreResponse, tags=["Membres"])
def update_membre(
    membre_id: str,
    payload: schemas.MembreUpdate,
    member_service: MemberService = Depends(get_member_service)
):
    return member_service.update_member(membre_id, MemberUpdate(**payload.model_dump(exclude_unset=True)))


@admin_router.delete("/membres/{membre_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Membres"])
def delete_membre(
    membre_id: str,
    current_admin: Member = Depends(auth.get_current_admin),
    member_service: MemberService = Depends(get_member_service)
):
    member_service.delete_member(membre_id)
    logger.info(f"Membre {membre_id} supprimé par {current_admin.email}")

# ============================================================================
# COTISATIONS
# ============================================================================

@admin_router.post("/cotisations", response_model=schemas.CotisationResponse, status_code=status.HTTP_201_CREATED, tags=["Cotisations"])
def create_cotisation(
    payload: schemas.CotisationCreate,
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    return cotisation_service.create_cotisation(**payload.model_dump())


@admin_router.get("/cotisations", response_model=schemas.CotisationPage, tags=["Cotisations"])
def list_cotisations(
    page: int = Query(1, ge=1),
    limit: int = Query(config.default_page_size, ge=1, le=config.max_page_size),
    statut: Optional[str] = None,
    membre_id: Optional[str] = None,
    mode_paiement: Optional[str] = None,
    date_debut: Optional[datetime] = None,
    date_fin: Optional[datetime] = None,
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    result = cotisation_service.list_dues(
        page=page,
        limit=limit,
        statut=statut,
        membre_id=membre_id,
        mode_paiement=mode_paiement,
        date_debut=date_debut,
        date_fin=date_fin
    )
    return _page(result, schemas.CotisationResponse)


@admin_router.get("/cotisations/statistiques", response_model=schemas.CotisationStatistics, tags=["Cotisations"])
def cotisations_statistics(cotisation_service: CotisationService = Depends(get_cotisation_service)):
    return cotisation_service.get_statistics()


@admin_router.get("/cotisations/expirant", response_model=List[schemas.CotisationResponse], tags=["Cotisations"])
def list_expiring_cotisations(
    jours: int = Query(30, ge=0, le=365),
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    """Cotisations à jour qui expirent dans les `jours` prochains jours"""
    return cotisation_service.list_expiring_dues(jours)


@admin_router.get("/cotisations/expirees", response_model=List[schemas.CotisationResponse], tags=["Cotisations"])
def list_expired_cotisations(
    jours: int = Query(0, ge=0, le=365),
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    return cotisation_service.list_expired_dues(jours)


@admin_router.get("/cotisations/{cotisation_id}", response_model=schemas.CotisationResponse, tags=["Cotisations"])
def get_cotisation(cotisation_id: str, cotisation_service: CotisationService = Depends(get_cotisation_service)):
    return cotisation_service.get_cotisation(cotisation_id)


@admin_router.put("/cotisations/{cotisation_id}", response_model=schemas.CotisationResponse, tags=["Cotisations"])
def update_cotisation(
    cotisation_id: str,
    payload: schemas.CotisationUpdate,
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    changes = CotisationUpdate(**payload.model_dump(exclude_unset=True))
    return cotisation_service.update_cotisation(cotisation_id, changes)


@admin_router.delete("/cotisations/{cotisation_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Cotisations"])
def delete_cotisation(cotisation_id: str, cotisation_service: CotisationService = Depends(get_cotisation_service)):
    cotisation_service.delete_cotisation(cotisation_id)


@router.get("/membres/{membre_id}/cotisations", response_model=List[schemas.CotisationResponse], tags=["Cotisations"])
def list_membre_cotisations(
    membre_id: str,
    current_member: Member = Depends(auth.get_current_member),
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    auth.ensure_self_or_admin(current_member, membre_id)
    return cotisation_service.list_member_dues(membre_id)


@router.get("/membres/{membre_id}/statut-cotisation", response_model=schemas.MemberDuesStatusResponse, tags=["Cotisations"])
def membre_dues_status(
    membre_id: str,
    current_member: Member = Depends(auth.get_current_member),
    cotisation_service: CotisationService = Depends(get_cotisation_service)
):
    auth.ensure_self_or_admin(current_member, membre_id)
    return cotisation_service.get_member_dues_status(membre_id)

# ============================================================================
# ÉVÉNEMENTS
# ============================================================================

@admin_router.post("/evenements", response_model=schemas.EvenementResponse, status_code=status.HTTP_201_CREATED, tags=["Evenements"])
def create_evenement(
    payload: schemas.EvenementCreate,
    current_admin: Member = Depends(auth.get_current_admin),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.create_evenement(createur_id=current_admin.id, **payload.model_dump())


@admin_router.get("/evenements/statistiques", response_model=schemas.EvenementStatistics, tags=["Evenements"])
def evenements_statistics(evenement_service: EvenementService = Depends(get_evenement_service)):
    return evenement_service.get_statistics()


@admin_router.put("/evenements/{evenement_id}", response_model=schemas.EvenementResponse, tags=["Evenements"])
def update_evenement(
    evenement_id: str,
    payload: schemas.EvenementUpdate,
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    changes = EvenementUpdate(**payload.model_dump(exclude_unset=True))
    return evenement_service.update_evenement(evenement_id, changes)


@admin_router.put("/evenements/{evenement_id}/capacite", response_model=schemas.EvenementResponse, tags=["Evenements"])
def set_evenement_capacity(
    evenement_id: str,
    payload: schemas.CapacityUpdate,
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.set_capacity(evenement_id, payload.places_total)


@admin_router.delete("/evenements/{evenement_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Evenements"])
def delete_evenement(evenement_id: str, evenement_service: EvenementService = Depends(get_evenement_service)):
    evenement_service.delete_evenement(evenement_id)


@admin_router.get("/evenements/{evenement_id}/participants", response_model=List[schemas.ParticipantResponse], tags=["Evenements"])
def list_participants(evenement_id: str, evenement_service: EvenementService = Depends(get_evenement_service)):
    return evenement_service.list_participants(evenement_id)


@admin_router.delete("/evenements/{evenement_id}/inscriptions/{membre_id}", response_model=schemas.InscriptionResponse, tags=["Evenements"])
def admin_cancel_registration(
    evenement_id: str,
    membre_id: str,
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.cancel_registration(evenement_id, membre_id)


@router.get("/evenements", response_model=schemas.EvenementPage, tags=["Evenements"])
def list_evenements(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=config.max_page_size),
    a_venir: bool = False,
    search: Optional[str] = None,
    est_publie: Optional[bool] = None,
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    """Les membres ne voient que les événements publiés"""
    if not current_member.is_admin:
        est_publie = True
    result = evenement_service.list_events(
        page=page, limit=limit, est_publie=est_publie, a_venir=a_venir, search=search
    )
    return _page(result, schemas.EvenementResponse)


@router.get("/evenements/calendrier", response_model=List[schemas.EvenementResponse], tags=["Evenements"])
def evenements_calendar(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1900, le=9999),
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.get_calendar(month, year)


@router.get("/evenements/{evenement_id}", response_model=schemas.EvenementResponse, tags=["Evenements"])
def get_evenement(
    evenement_id: str,
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    evenement = evenement_service.get_evenement(evenement_id)
    if not evenement.est_publie and not current_member.is_admin:
        raise NotFoundError(f"Event '{evenement_id}' not found")
    return evenement


@router.post("/evenements/{evenement_id}/inscription", response_model=schemas.InscriptionResponse, status_code=status.HTTP_201_CREATED, tags=["Evenements"])
def register_to_evenement(
    evenement_id: str,
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.register(evenement_id, current_member.id)


@router.delete("/evenements/{evenement_id}/inscription", response_model=schemas.InscriptionResponse, tags=["Evenements"])
def cancel_registration(
    evenement_id: str,
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    return evenement_service.cancel_registration(evenement_id, current_member.id)


@router.get("/membres/me/inscriptions", response_model=List[schemas.MemberRegistrationResponse], tags=["Evenements"])
def list_my_registrations(
    a_venir: bool = False,
    current_member: Member = Depends(auth.get_current_member),
    evenement_service: EvenementService = Depends(get_evenement_service)
):
    registrations = evenement_service.list_member_registrations(current_member.id, upcoming_only=a_venir)
    return [
        {
            "inscription": schemas.InscriptionResponse.model_validate(inscription),
            "evenement": schemas.EvenementResponse.model_validate(evenement)
        }
        for inscription, evenement in registrations
    ]

# ============================================================================
# MAINTENANCE (déclenchement manuel des tâches planifiées)
# ============================================================================

@admin_router.post("/admin/maintenance/sweep", response_model=schemas.SweepResponse, tags=["Maintenance"])
def run_sweep(maintenance_service: MaintenanceService = Depends(get_maintenance_service)):
    return maintenance_service.run_sweep()


@admin_router.post("/admin/maintenance/reminders", response_model=schemas.ReminderReport, tags=["Maintenance"])
def run_dues_reminders(
    days: int = Query(config.dues_reminder_days, ge=0, le=365),
    maintenance_service: MaintenanceService = Depends(get_maintenance_service)
):
    return maintenance_service.run_dues_reminders(days)


@admin_router.post("/admin/maintenance/event-reminders", response_model=schemas.ReminderReport, tags=["Maintenance"])
def run_event_reminders(maintenance_service: MaintenanceService = Depends(get_maintenance_service)):
    return maintenance_service.run_event_reminders()


@admin_router.post("/admin/maintenance/monthly-report", response_model=schemas.CotisationStatistics, tags=["Maintenance"])
def run_monthly_report(maintenance_service: MaintenanceService = Depends(get_maintenance_service)):
    return maintenance_service.run_monthly_report()
