def test_imports():
    """Ensure core modules can be imported without crashing."""
    import identity  # noqa: F401
    import infrastructure.identity.identity_client  # noqa: F401
    import infrastructure.observability  # noqa: F401
    import infrastructure.repositories.sqlite_tracking_repository  # noqa: F401
    import use_cases  # noqa: F401
    import use_cases.auth_flow  # noqa: F401
    import use_cases.bootstrap  # noqa: F401
    import use_cases.terms_flow  # noqa: F401
    import utils.session_manager  # noqa: F401
    import views.identity_view  # noqa: F401
