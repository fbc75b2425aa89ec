def register_views(plugin_manager):
    """Register carousel views"""
    from .community_view import CommunityQRView
    plugin_manager.register_view(CommunityQRView)
