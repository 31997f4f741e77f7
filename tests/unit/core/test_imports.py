"""Service modules import cleanly on their own, whichever is loaded first."""

import os
import subprocess
import sys
from unittest.mock import MagicMock

import pytest

from galaltix.core.core import Services

SERVICE_MODULES = [
    "galaltix.core.modules.user.service",
    "galaltix.core.modules.session.service",
    "galaltix.core.modules.access.service",
    "galaltix.core.modules.sequence.service",
    "galaltix.core.modules.invoice.service",
    "galaltix.core.modules.receipt.service",
]


class TestServiceImports:
    """Each service module is importable before galaltix.core.core."""

    @pytest.mark.parametrize("module", SERVICE_MODULES)
    def test_import_first(self, module):
        env = {**os.environ, "PYTHONPATH": os.pathsep.join(sys.path)}
        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"], capture_output=True, text=True, env=env, check=False
        )

        assert result.returncode == 0, result.stderr

    def test_registry_builds_every_service(self):
        services = Services(MagicMock())

        assert type(services.invoice).__name__ == "InvoiceService"
        assert type(services.receipt).__name__ == "ReceiptService"
        assert type(services.sequence).__name__ == "SequenceService"
