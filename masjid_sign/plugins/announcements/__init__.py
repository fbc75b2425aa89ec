from .task import AnnouncementsTask


def _create_task(app):
    polling = app.config.section("polling")
    task = AnnouncementsTask(polling.get("announcements_seconds"), app.config.section("sign").get("timezone"))
    return task, {}


def register_views(plugin_manager):
    """Register carousel views"""
    from .announcement_view import AnnouncementView
    plugin_manager.register_view(AnnouncementView)


def register_tasks(plugin_manager):
    """Register poll tasks"""
    plugin_manager.register_task(_create_task)
