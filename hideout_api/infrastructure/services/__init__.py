from .fake_build_services import FakeBuildCrafter, FakeBuildTranslator
from .google_build_services import GeminiBuildCrafter, GeminiBuildTranslator

__all__ = [
    "FakeBuildCrafter",
    "FakeBuildTranslator",
    "GeminiBuildCrafter",
    "GeminiBuildTranslator",
]
