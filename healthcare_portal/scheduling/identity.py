"""Acting identities carried through booking and lifecycle checks."""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PatientIdentity:
    id: int

    @property
    def is_patient(self) -> bool:
        return True

    @property
    def is_provider(self) -> bool:
        return False


@dataclass(frozen=True)
class ProviderIdentity:
    id: int

    @property
    def is_patient(self) -> bool:
        return False

    @property
    def is_provider(self) -> bool:
        return True


Identity = Union[PatientIdentity, ProviderIdentity]


def owns(identity: Identity, patient_id: int, provider_id: int) -> bool:
    """True when the identity is the patient or provider on an appointment."""
    if isinstance(identity, PatientIdentity):
        return identity.id == patient_id
    return identity.id == provider_id
