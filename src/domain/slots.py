"""
Slot allocator - first-come free slots per gender bucket.

The first ``free_slot_limit`` confirmed registrants (FREE or PAID) of each
gender are admitted without payment; everyone after them starts PENDING.
"""

from dataclasses import dataclass

from .models import PaymentStatus
from .ports import ProfileRepository


@dataclass
class SlotAllocator:
    """Decides FREE vs PENDING for a new registrant."""

    repository: ProfileRepository
    free_slot_limit: int = 5

    def decide(self, confirmed_count: int) -> PaymentStatus:
        """Map the number of confirmed profiles in a bucket to a status."""
        if confirmed_count < self.free_slot_limit:
            return PaymentStatus.FREE
        return PaymentStatus.PENDING

    def allocate(self, gender: str) -> PaymentStatus:
        """
        Status the next registrant of this gender would receive.

        This is a point-in-time read. Profile creation re-applies
        ``decide`` under the repository's per-gender lock, which is what
        actually assigns the slot.
        """
        return self.decide(self.repository.count_confirmed(gender))

    def remaining(self, gender: str) -> int:
        """Free slots still available in the gender bucket."""
        return max(0, self.free_slot_limit - self.repository.count_confirmed(gender))
