import importlib
import logging
import pkgutil
from typing import Any, Callable, Dict, List, Optional, Type

from .view_base import SignViewWidget


class PluginManager:
    """
    Discovers masjid_sign.plugins.<name> packages. A plugin may expose
    register_views(plugin_manager) and/or register_tasks(plugin_manager).
    """

    def __init__(self, plugin_package: str = "masjid_sign.plugins"):
        self.views: Dict[Any, Type[SignViewWidget]] = {}
        self.task_factories: List[Callable[[Any], Any]] = []
        self.plugins: List[str] = []
        self.logger = logging.getLogger(__name__)
        self.discover_plugins(plugin_package)

    def discover_plugins(self, plugin_package: str = "masjid_sign.plugins") -> None:
        package = importlib.import_module(plugin_package)
        self.logger.info(f"Discovering plugins in package: {plugin_package}")

        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg or name in self.plugins:
                continue
            try:
                module = importlib.import_module(f"{plugin_package}.{name}")
                if hasattr(module, "register_views"):
                    module.register_views(self)
                if hasattr(module, "register_tasks"):
                    module.register_tasks(self)
                self.plugins.append(name)
                self.logger.info(f"Loaded plugin: {name}")
            except Exception as e:
                self.logger.error(f"Error loading plugin {name}: {e}")
                self.logger.exception(e)

    def register_view(self, view_class: Type[SignViewWidget]) -> None:
        self.logger.debug(f"Registering view {view_class.__name__} for {view_class.kind}")
        self.views[view_class.kind] = view_class

    def register_task(self, factory: Callable[[Any], Any]) -> None:
        """factory(app) -> (BaseTask, config section for it); called once at startup."""
        self.task_factories.append(factory)

    def create_view(self, app, kind: Any, config: Dict[str, Any]) -> Optional[SignViewWidget]:
        if kind not in self.views:
            self.logger.warning(f"No view registered for {kind}")
            return None
        return self.views[kind](app, config)
