"""Dependency injection container for the application."""

from dependency_injector import containers, providers

from core.config import Settings
from core.database import Database
from services.benchmark import BenchmarkConfig, BenchmarkEngine, ResultCache


class Container(containers.DeclarativeContainer):
    """Application dependency injection container."""

    # Settings
    settings = providers.Singleton(
        Settings,
    )

    database = providers.Singleton(
        Database,
        settings=settings
    )

    benchmark_config = providers.Singleton(
        BenchmarkConfig.from_settings,
        settings=settings
    )

    # Opens a fresh workload connection per run
    benchmark_engine = providers.Singleton(
        BenchmarkEngine,
        store_factory=database.provided.workload_store,
        config=benchmark_config
    )

    # Singleton so the single-flight lock is shared by all requests
    result_cache = providers.Singleton(
        ResultCache,
        database=database,
        engine=benchmark_engine,
        config=benchmark_config
    )


# Global container instance
container = Container()
