"""Offer data model and composite-offer decomposition."""

from boostedge.offers.decomposer import CompositeOfferDecomposer, unsupported_props
from boostedge.offers.models import (
    AtomicKind,
    AtomicLegRequest,
    ClassifiedOffer,
    CompositeOffer,
    DecompositionResult,
)

__all__ = [
    "AtomicKind",
    "AtomicLegRequest",
    "ClassifiedOffer",
    "CompositeOffer",
    "CompositeOfferDecomposer",
    "DecompositionResult",
    "unsupported_props",
]
