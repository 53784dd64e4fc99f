# Service layer modules
from .name_resolution_service import UniqueNameResolver
from .service_container import ServiceContainer

__all__ = ['UniqueNameResolver', 'ServiceContainer']
