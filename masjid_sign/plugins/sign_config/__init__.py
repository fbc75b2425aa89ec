from .task import SignConfigTask


def _create_task(app):
    return SignConfigTask(app.config.section("polling").get("sign_config_seconds")), {}


def register_tasks(plugin_manager):
    """Register poll tasks"""
    plugin_manager.register_task(_create_task)
