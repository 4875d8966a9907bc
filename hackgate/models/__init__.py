from hackgate.models.base import Base, engine, AsyncSessionFactory
from hackgate.models.models import (
    User,
    Team,
    TeamMembership,
    CheckInEntry,
    Counter,
    TeamSize,
    PaymentStatus,
    TeamStatus,
    ProofKind,
    CheckInMethod,
    CounterName,
    GatewayProof,
    ManualProof,
    PaymentProof,
    utcnow,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "User",
    "Team",
    "TeamMembership",
    "CheckInEntry",
    "Counter",
    "TeamSize",
    "PaymentStatus",
    "TeamStatus",
    "ProofKind",
    "CheckInMethod",
    "CounterName",
    "GatewayProof",
    "ManualProof",
    "PaymentProof",
    "utcnow",
]
