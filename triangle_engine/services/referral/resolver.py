"""
Referral resolver.

Maps a referral identifier to an upline participant.
"""

import re

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.settings import settings
from triangle_engine.models.participant import Participant
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)

# Participant IDs are 32-char hex strings
PARTICIPANT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


class ReferralResolver:
    """
    Resolves referral identifiers to participants.

    Strategies are tried in a fixed order and the first match wins:
    1. Direct participant ID lookup (only for well-formed IDs)
    2. Display name
    3. Issued referral code
    4. Case-insensitive suffix of a participant ID

    Deactivated participants never match; the lookup moves on to the next
    strategy. The suffix strategy scans the whole participants table.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize referral resolver.

        Args:
            session: Async database session
        """
        self.session = session
        self.participant_repo = ParticipantRepository(session)

    async def resolve(self, identifier: str) -> Participant | None:
        """
        Resolve a referral identifier.

        Args:
            identifier: ID, display name, referral code or ID suffix

        Returns:
            First matching participant or None
        """
        identifier = (identifier or "").strip()
        if not identifier:
            return None

        if PARTICIPANT_ID_PATTERN.match(identifier):
            participant = await self.participant_repo.get_by_id(identifier.lower())
            if self._is_live(participant):
                return self._matched(participant, "id")

        participant = await self.participant_repo.get_by_display_name(identifier)
        if self._is_live(participant):
            return self._matched(participant, "display_name")

        participant = await self.participant_repo.get_by_referral_code(identifier)
        if self._is_live(participant):
            return self._matched(participant, "referral_code")

        if len(identifier) >= settings.referral_suffix_min_length:
            participant = await self.participant_repo.find_by_id_suffix(identifier)
            if participant:
                return self._matched(participant, "id_suffix")

        logger.debug("Referral identifier not resolved")
        return None

    @staticmethod
    def _is_live(participant: Participant | None) -> bool:
        if participant is None:
            return False
        if not participant.is_active:
            logger.debug(
                "Inactive participant skipped",
                extra={"participant_id": participant.id},
            )
            return False
        return True

    @staticmethod
    def _matched(participant: Participant, strategy: str) -> Participant:
        logger.debug(
            "Referral identifier resolved",
            extra={"participant_id": participant.id, "strategy": strategy},
        )
        return participant
