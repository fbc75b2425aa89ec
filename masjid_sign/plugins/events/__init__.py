from .task import CalendarEventsTask


def _create_task(app):
    polling = app.config.section("polling")
    task = CalendarEventsTask(polling.get("calendar_seconds"), app.config.section("sign").get("timezone"))
    return task, app.config.section("calendar")


def register_views(plugin_manager):
    """Register carousel views"""
    from .events_view import UpcomingEventsView
    plugin_manager.register_view(UpcomingEventsView)


def register_tasks(plugin_manager):
    """Register poll tasks"""
    plugin_manager.register_task(_create_task)
