"""Final installation report."""

from __future__ import annotations

from ..output import Output
from .collect import DeploymentConfig
from .initializer import InitResult

RULE = "================================================="


class Reporter:
    """Print init output and access details.

    The init output is the only place admin credentials appear. It goes to
    the terminal once and nowhere else.
    """

    def __init__(self, output: Output):
        self.out = output

    def show(self, config: DeploymentConfig, init: InitResult) -> None:
        self.out.info("Configuration results:")
        self.out.raw(init.output)

        self.out.banner(RULE)
        self.out.banner(" INSTALLATION COMPLETE")
        self.out.banner(RULE)
        self.out.info(f"Access URL:   {config.public_url}")
        self.out.info(
            f"              (route 443 via 'tailscale serve' or funnel to "
            f"{config.bind_address}:{config.port})"
        )
        self.out.info(f"Direct URL:   {config.direct_url}")
        self.out.info(f"Storage Path: {config.storage_path}")
        self.out.blank()
        self.out.ok("Check the output above for any admin credentials.")
