"""NLU service client and response translation."""

from botfleet.services.nlu.client import NLUClient
from botfleet.services.nlu.translator import EMPTY_REPLY, translate

__all__ = ["NLUClient", "EMPTY_REPLY", "translate"]
