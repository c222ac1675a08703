"""Travel log of visited and wishlist places."""

__version__ = "0.1.0"


# The CLI is imported on first use so the domain layer loads without click
def __getattr__(name):
    if name == "main":
        from travellog.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
