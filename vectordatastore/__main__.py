"""Run the API server: ``python -m vectordatastore``."""

from vectordatastore.api.app import run

if __name__ == "__main__":
    run()
