"""
Mappers - Conversion entre modèles SQLAlchemy et entités de domaine
"""

from typing import Optional
from infrastructure.database.models import (
    MemberModel, CotisationModel, EvenementModel, InscriptionModel
)
from domain.entities import (
    Member, Cotisation, Evenement, Inscription, Participant
)


class MemberMapper:
    """Mapper entre MemberModel et Member"""

    @staticmethod
    def to_domain(model: MemberModel) -> Member:
        """Convertit un MemberModel en entité Member"""
        return Member(
            id=model.id,
            nom=model.nom,
            prenom=model.prenom,
            email=model.email,
            hashed_password=model.hashed_password,
            role=model.role,
            statut=model.statut,
            telephone=model.telephone,
            created_at=model.created_at,
            updated_at=model.updated_at,
            reset_token_hash=model.reset_token_hash,
            reset_token_expires_at=model.reset_token_expires_at
        )

    @staticmethod
    def to_model(member: Member, model: Optional[MemberModel] = None) -> MemberModel:
        """Convertit une entité Member en MemberModel"""
        if model is None:
            model = MemberModel()

        model.id = member.id
        model.nom = member.nom
        model.prenom = member.prenom
        model.email = member.email
        model.hashed_password = member.hashed_password
        model.role = member.role.value
        model.statut = member.statut.value
        model.telephone = member.telephone
        model.reset_token_hash = member.reset_token_hash
        model.reset_token_expires_at = member.reset_token_expires_at
        if member.created_at is not None:
            model.created_at = member.created_at

        return model


class CotisationMapper:
    """Mapper entre CotisationModel et Cotisation"""

    @staticmethod
    def to_domain(model: CotisationModel) -> Cotisation:
        """Convertit un CotisationModel en entité Cotisation"""
        return Cotisation(
            id=model.id,
            membre_id=model.membre_id,
            date_paiement=model.date_paiement,
            montant=model.montant,
            mode_paiement=model.mode_paiement,
            date_expiration=model.date_expiration,
            statut=model.statut,
            notes=model.notes,
            periode=model.periode,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    @staticmethod
    def to_model(cotisation: Cotisation, model: Optional[CotisationModel] = None) -> CotisationModel:
        """Convertit une entité Cotisation en CotisationModel"""
        if model is None:
            model = CotisationModel()

        model.id = cotisation.id
        model.membre_id = cotisation.membre_id
        model.date_paiement = cotisation.date_paiement
        model.montant = cotisation.montant
        model.mode_paiement = cotisation.mode_paiement.value
        model.date_expiration = cotisation.date_expiration
        model.statut = cotisation.statut.value
        model.notes = cotisation.notes
        model.periode = cotisation.periode
        if cotisation.created_at is not None:
            model.created_at = cotisation.created_at

        return model


class EvenementMapper:
    """Mapper entre EvenementModel et Evenement"""

    @staticmethod
    def to_domain(model: EvenementModel) -> Evenement:
        """Convertit un EvenementModel en entité Evenement"""
        return Evenement(
            id=model.id,
            titre=model.titre,
            date_debut=model.date_debut,
            lieu=model.lieu,
            places_total=model.places_total,
            places_restantes=model.places_restantes,
            est_publie=bool(model.est_publie),
            description=model.description,
            date_fin=model.date_fin,
            createur_id=model.createur_id,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    @staticmethod
    def to_model(evenement: Evenement, model: Optional[EvenementModel] = None) -> EvenementModel:
        """
        Convertit une entité Evenement en EvenementModel.
        Le compteur de places n'est écrit qu'à la création : ensuite il ne
        change que par register / cancel / resize.
        """
        if model is None:
            model = EvenementModel()
            model.places_total = evenement.places_total
            model.places_restantes = evenement.places_restantes

        model.id = evenement.id
        model.titre = evenement.titre
        model.description = evenement.description
        model.date_debut = evenement.date_debut
        model.date_fin = evenement.date_fin
        model.lieu = evenement.lieu
        model.est_publie = evenement.est_publie
        model.createur_id = evenement.createur_id
        if evenement.created_at is not None:
            model.created_at = evenement.created_at

        return model


class InscriptionMapper:
    """Mapper entre InscriptionModel et Inscription"""

    @staticmethod
    def to_domain(model: InscriptionModel) -> Inscription:
        """Convertit un InscriptionModel en entité Inscription"""
        return Inscription(
            id=model.id,
            membre_id=model.membre_id,
            evenement_id=model.evenement_id,
            statut=model.statut,
            date_inscription=model.date_inscription,
            updated_at=model.updated_at
        )

    @staticmethod
    def to_participant(model: InscriptionModel) -> Participant:
        """Vue participant (inscription + membre chargé)"""
        membre = model.membre
        return Participant(
            membre_id=membre.id,
            nom=membre.nom,
            prenom=membre.prenom,
            email=membre.email,
            telephone=membre.telephone,
            date_inscription=model.date_inscription,
            statut=model.statut
        )
