"""Centralized dependency injection container."""
import structlog
from dependency_injector import containers, providers

from core.settings import SETTINGS, Settings
from infra.resources import DatabaseResource, OpenAIResource


logger = structlog.get_logger("chat")


class InfrastructureContainer(containers.DeclarativeContainer):
    """Infrastructure layer dependencies."""

    settings = providers.Dependency(instance_of=Settings)
    logger = providers.Object(logger)

    # Embedded SQLite database, one engine for the process
    database = providers.Singleton(
        DatabaseResource,
        database_url=settings.provided.DATABASE.DATABASE_URL,
        echo=settings.provided.DATABASE.DATABASE_ECHO,
    )

    # OpenAI
    openai_client = providers.Singleton(
        OpenAIResource,
        api_key=settings.provided.OPENAI.OPENAI_API_KEY.get_secret_value.call(),
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    settings = providers.Dependency(instance_of=Settings)
    infrastructure = providers.DependenciesContainer()

    conversation_store = providers.Singleton(
        "api.features.conversation.repository.ConversationStore",
        database=infrastructure.database,
    )

    chat_model = providers.Singleton(
        "api.features.conversation.model_client.OpenAIChatModel",
        openai_resource=infrastructure.openai_client,
        model=settings.provided.OPENAI.OPENAI_MODEL,
        max_tokens=settings.provided.OPENAI.OPENAI_MAX_TOKENS,
        temperature=settings.provided.OPENAI.OPENAI_TEMPERATURE,
    )

    chat_orchestrator = providers.Factory(
        "api.features.conversation.service.ChatOrchestrator",
        store=conversation_store,
        chat_model=chat_model,
        system_prompt=settings.provided.OPENAI.SYSTEM_PROMPT,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    settings = providers.Dependency(instance_of=Settings)
    services = providers.DependenciesContainer()

    conversation_controller = providers.Factory(
        "api.features.conversation.controller.ConversationController",
        chat_orchestrator=services.chat_orchestrator,
        production=settings.provided.APP.is_production,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers.

    ``settings`` can be overridden at construction time
    (``ApplicationContainer(settings=providers.Object(my_settings))``); every
    component receives its configuration through its constructor.
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.features.conversation.router",
        ]
    )

    settings = providers.Object(SETTINGS)

    infrastructure = providers.Container(InfrastructureContainer, settings=settings)
    services = providers.Container(
        ServiceContainer, settings=settings, infrastructure=infrastructure
    )
    controllers = providers.Container(
        ControllerContainer, settings=settings, services=services
    )
