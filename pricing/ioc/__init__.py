from collections.abc import Iterable
from typing import Any

from dishka import AsyncContainer, Provider, make_async_container

from pricing.ioc.app import provider as app_provider
from pricing.ioc.services import SchedulerProvider, ServicesProvider
from pricing.ioc.starlette import setup_dishka
from pricing.settings import Settings


def get_providers() -> list[Provider]:
    return [app_provider, ServicesProvider()]


def build_container(
    settings: Settings,
    *,
    extra_providers: Iterable[Provider] = (),
    context_overrides: dict[type[Any], Any] | None = None,
    with_scheduler: bool = True,
    **kwargs: Any,
) -> AsyncContainer:
    context: dict[type[Any], Any] = {Settings: settings}
    providers = get_providers()
    if with_scheduler:
        providers.append(SchedulerProvider())
    providers.extend(extra_providers)
    if context_overrides:
        context.update(context_overrides)
    return make_async_container(
        *providers,
        context=context,
        **kwargs,
    )


__all__ = ["get_providers", "setup_dishka", "build_container"]
