from __future__ import annotations

from pathlib import Path
from typing import Any

from apitable.console import ConsoleManager

from .classifier import MemberClassifier
from .models import ApiModel, ApiModelBuilder
from .providers.interface import (
    ModuleLoadError,
    TypeHandle,
    TypeLoadError,
    TypeSurfaceProvider,
)
from .providers.manifest import ManifestProvider, manifest_identity
from .providers.python_module import PythonModuleProvider
from .providers.resolver import DependencyResolver, module_identity
from .renderer import ReportRenderer, render_diagnostics


class ApiTableService:
    """
    Runs one scan: load, classify, render.
    """

    def __init__(
        self,
        *,
        app_config: dict[str, Any],
        logger: ConsoleManager,
    ) -> None:
        self._app_config = app_config
        self._logger = logger
        self._search_root = Path(app_config["search_root"]).resolve()
        self._classifier = MemberClassifier(logger=logger)
        self._renderer = ReportRenderer()

    def run(self, module_path: Path) -> list[str]:
        """
        Produces the report lines for `module_path`, with a diagnostic
        block first when loading failed in whole or in part.
        """
        self._logger.info(f"Starting API scan of '{module_path}'")
        provider = self.provider_for(module_path)

        types, failures = self._load_types(provider, module_path)
        model = self.build_model(types)
        self._logger.info(
            f"Catalogued {len(model.types())} type(s), {len(model)} entr(ies)"
        )

        return render_diagnostics(failures) + self._renderer.render(model)

    def build_model(self, types: list[TypeHandle]) -> ApiModel:
        builder = ApiModelBuilder()
        self._classifier.classify_all(types, builder)
        return builder.build()

    def provider_for(self, module_path: Path) -> TypeSurfaceProvider:
        if module_path.suffix.lower() in ManifestProvider.SUFFIXES:
            resolver = self._resolver(
                "manifest_patterns", ["*.yaml", "*.yml"], manifest_identity
            )
            return ManifestProvider(resolver=resolver, logger=self._logger)

        resolver = self._resolver(
            "library_patterns", ["*.py", "*.so", "*.pyd"], module_identity
        )
        return PythonModuleProvider(resolver=resolver, logger=self._logger)

    # --- Private Helpers ---

    def _resolver(self, key: str, fallback: list[str], identity_of) -> DependencyResolver:
        return DependencyResolver(
            root=self._search_root,
            patterns=self._app_config.get(key) or fallback,
            identity_of=identity_of,
            logger=self._logger,
            exclude=self._app_config.get("exclude"),
        )

    def _load_types(
        self, provider: TypeSurfaceProvider, module_path: Path
    ) -> tuple[list[TypeHandle], list[BaseException]]:
        try:
            module = provider.load_module(module_path)
            return module.declared_types(), []
        except TypeLoadError as e:
            self._logger.warning(
                f"{len(e.loader_exceptions)} type(s) failed to load; "
                f"continuing with {len(e.types)}"
            )
            return e.types, e.loader_exceptions
        except ModuleLoadError as e:
            self._logger.error(str(e))
            return [], [e, *e.causes]
