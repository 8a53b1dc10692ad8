from django.urls import path

from . import api_views

app_name = "derivatives"

urlpatterns = [
    # Strategy analysis
    path("options/analyze/", api_views.analyze_strategy, name="api_analyze_strategy"),
    # Market data
    path("options/chain/<str:symbol>/", api_views.get_option_chain, name="api_option_chain"),
    path(
        "options/contract/<str:symbol>/",
        api_views.get_option_contract,
        name="api_option_contract",
    ),
    path(
        "options/expirations/<str:symbol>/",
        api_views.get_expirations,
        name="api_option_expirations",
    ),
    # Positions
    path("positions/", api_views.get_positions, name="api_positions"),
]
