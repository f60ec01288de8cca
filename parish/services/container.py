"""Dependency injection container for services."""

from dependency_injector import containers, providers
from sqlalchemy.orm import sessionmaker

from parish.config import Settings
from parish.services.activity_service import ActivityService
from parish.services.cache_service import CacheOptimizationService, create_cache_store
from parish.services.certificate_validator import MarriageCertificateValidator
from parish.services.dialect_service import DatabaseCompatibilityService
from parish.services.family_service import FamilyService
from parish.services.member_export_service import MemberExportService
from parish.services.member_import_service import MemberImportService
from parish.services.member_service import MemberService
from parish.services.performance_monitor_service import PerformanceMonitorService
from parish.services.sacrament_service import SacramentService
from parish.services.tithe_service import TitheService


class ServiceContainer(containers.DeclarativeContainer):
    """Container for service dependency injection."""

    # Configuration providers
    config = providers.Dependency(instance_of=Settings)
    session_maker = providers.Dependency(instance_of=sessionmaker)
    db_session = providers.ContextLocalSingleton(
        session_maker.provided.call()
    )

    # Process-wide state
    cache_store = providers.Singleton(
        create_cache_store,
        backend=config.provided.cache_backend,
    )
    dialect = providers.Singleton(
        DatabaseCompatibilityService,
        driver=config.provided.database_driver,
    )
    performance_monitor = providers.Singleton(
        PerformanceMonitorService,
        settings=config,
        cache_store=cache_store,
    )

    # Request-scoped services
    cache_service = providers.Factory(
        CacheOptimizationService,
        db=db_session,
        cache_store=cache_store,
        dialect=dialect,
    )
    member_service = providers.Factory(
        MemberService,
        db=db_session,
        cache_service=cache_service,
    )
    family_service = providers.Factory(
        FamilyService,
        db=db_session,
        cache_service=cache_service,
    )
    sacrament_service = providers.Factory(
        SacramentService,
        db=db_session,
        cache_service=cache_service,
    )
    tithe_service = providers.Factory(
        TitheService,
        db=db_session,
        cache_service=cache_service,
        dialect=dialect,
    )
    activity_service = providers.Factory(
        ActivityService,
        db=db_session,
        cache_service=cache_service,
    )
    member_import_service = providers.Factory(
        MemberImportService,
        db=db_session,
        cache_service=cache_service,
        settings=config,
    )
    member_export_service = providers.Factory(
        MemberExportService,
        db=db_session,
        dialect=dialect,
    )

    certificate_validator = providers.Factory(
        MarriageCertificateValidator,
        default_location=config.provided.default_marriage_location,
        default_officiant=config.provided.default_officiant,
        default_religion=config.provided.default_marriage_religion,
    )
