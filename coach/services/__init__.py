from .provider import WorkoutProviderClient, WorkoutProviderError
from .generation import GenerationService

__all__ = ['WorkoutProviderClient', 'WorkoutProviderError', 'GenerationService']
