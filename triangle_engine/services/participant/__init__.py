"""Participant service package."""

from triangle_engine.services.participant.registration import ParticipantService

__all__ = ["ParticipantService"]
