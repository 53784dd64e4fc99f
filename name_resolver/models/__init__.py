# Data models
from .resolution import ResolutionRequest, ResolvedName

__all__ = ['ResolutionRequest', 'ResolvedName']
