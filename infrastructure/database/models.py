"""
Modèles SQLAlchemy - Schéma relationnel (membres, cotisations, événements, inscriptions)
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Enum, DateTime, Integer, Boolean, Numeric, ForeignKey,
    UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def generate_id():
    return str(uuid.uuid4())


class MemberModel(Base):
    """Modèle SQLAlchemy pour les membres"""
    __tablename__ = "members"

    id = Column(String, primary_key=True, default=generate_id)
    nom = Column(String(100), nullable=False)
    prenom = Column(String(100), nullable=False)
    # Stocké en minuscules : l'unicité est insensible à la casse
    email = Column(String(255), unique=True, index=True, nullable=False)
    telephone = Column(String(30), nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum("ADMIN", "MEMBRE", name="member_role"), default="MEMBRE", nullable=False)
    statut = Column(
        Enum("ACTIF", "INACTIF", "BUREAU", name="member_status"),
        default="ACTIF",
        nullable=False,
        index=True
    )
    reset_token_hash = Column(String, nullable=True)
    reset_token_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cotisations = relationship(
        "CotisationModel",
        back_populates="membre",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    inscriptions = relationship(
        "InscriptionModel",
        back_populates="membre",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    evenements_crees = relationship("EvenementModel", back_populates="createur")


class CotisationModel(Base):
    """Modèle SQLAlchemy pour les cotisations"""
    __tablename__ = "cotisations"
    __table_args__ = (
        UniqueConstraint("membre_id", "periode", name="uq_cotisation_membre_periode"),
    )

    id = Column(String, primary_key=True, default=generate_id)
    membre_id = Column(
        String, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date_paiement = Column(DateTime, nullable=False, index=True)
    montant = Column(Numeric(10, 2), nullable=False)
    mode_paiement = Column(
        Enum("ESPECES", "CHEQUE", "VIREMENT", "CARTE_BANCAIRE", name="payment_mode"),
        nullable=False
    )
    date_expiration = Column(DateTime, nullable=False, index=True)
    statut = Column(
        Enum("A_JOUR", "EXPIRE", "EN_ATTENTE", name="dues_status"),
        default="A_JOUR",
        nullable=False,
        index=True
    )
    notes = Column(Text, nullable=True)
    periode = Column(String(7), nullable=True)  # MM/YYYY
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    membre = relationship("MemberModel", back_populates="cotisations")


class EvenementModel(Base):
    """Modèle SQLAlchemy pour les événements"""
    __tablename__ = "evenements"
    __table_args__ = (
        CheckConstraint(
            "places_restantes >= 0 AND places_restantes <= places_total",
            name="ck_evenement_places"
        ),
    )

    id = Column(String, primary_key=True, default=generate_id)
    titre = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date_debut = Column(DateTime, nullable=False, index=True)
    date_fin = Column(DateTime, nullable=True)
    lieu = Column(String(255), nullable=False)
    places_total = Column(Integer, nullable=False)
    places_restantes = Column(Integer, nullable=False)
    est_publie = Column(Boolean, default=True, nullable=False, index=True)
    createur_id = Column(
        String, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    createur = relationship("MemberModel", back_populates="evenements_crees")
    inscriptions = relationship(
        "InscriptionModel",
        back_populates="evenement",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class InscriptionModel(Base):
    """Modèle SQLAlchemy pour les inscriptions (unique par membre/événement)"""
    __tablename__ = "inscriptions"
    __table_args__ = (
        UniqueConstraint("membre_id", "evenement_id", name="uq_inscription_membre_evenement"),
    )

    id = Column(String, primary_key=True, default=generate_id)
    membre_id = Column(
        String, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    evenement_id = Column(
        String, ForeignKey("evenements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    statut = Column(
        Enum("CONFIRMEE", "EN_ATTENTE", "ANNULEE", name="registration_status"),
        default="CONFIRMEE",
        nullable=False,
        index=True
    )
    date_inscription = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    membre = relationship("MemberModel", back_populates="inscriptions")
    evenement = relationship("EvenementModel", back_populates="inscriptions")
