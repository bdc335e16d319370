"""finledger - personal finance ledger."""

__version__ = "0.1.0"


# The CLI pulls in the database and domain layers; load it only on demand
def __getattr__(name):
    if name == "main":
        from finledger.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
