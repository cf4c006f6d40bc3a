# mentormesh/models/__init__.py
from mentormesh.models.base import Base  # noqa: F401

from mentormesh.models.user import User  # noqa: F401
from mentormesh.models.availability_slot import AvailabilitySlot  # noqa: F401
