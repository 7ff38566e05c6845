"""Serves a live Gradio preview of a schema document.

Usage:
    python examples/04_live_preview.py [schema.json|schema.yaml]

Without an argument the starter contact form is shown.
"""

import sys

from gradio_form_builder.config import load_config
from gradio_form_builder.exchange.document import load_schema_file
from gradio_form_builder.observability.logging import setup_logging
from gradio_form_builder.runtime.session import FormRuntimeSession
from gradio_form_builder.store.store import FormSchemaStore
from gradio_form_builder.ui.layout import launch_preview


def run_example():
    config = load_config()
    setup_logging(config.log_level)

    store = FormSchemaStore(config=config)
    if len(sys.argv) > 1:
        store.load(load_schema_file(sys.argv[1]))
    session = FormRuntimeSession(store, config=config)
    launch_preview(session)


if __name__ == "__main__":
    run_example()
