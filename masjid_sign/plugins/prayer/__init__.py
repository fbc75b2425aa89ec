from .task import PrayerTimesTask


def _create_task(app):
    polling = app.config.section("polling")
    sign = app.config.section("sign")
    task = PrayerTimesTask(polling.get("prayer_times_seconds"), sign.get("timezone"))
    return task, app.config.section("prayer_api")


def register_views(plugin_manager):
    """Register carousel views"""
    from .prayer_view import PrayerTimesView
    plugin_manager.register_view(PrayerTimesView)


def register_tasks(plugin_manager):
    """Register poll tasks"""
    plugin_manager.register_task(_create_task)
