"""idpgen - Blueprint/stack driven infrastructure-as-code template renderer.

Turns a blueprint or stack record into Terraform, Kubernetes YAML or JSON
files by rendering a directory of Jinja2 templates against a path-addressable
variable store.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
