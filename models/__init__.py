from .challenge import Challenge, ChallengeStatus, QuitRequest, QuitRequestStatus
from .quit_request import QuitRequestRecord

__all__ = ['Challenge', 'ChallengeStatus', 'QuitRequest', 'QuitRequestStatus', 'QuitRequestRecord']
