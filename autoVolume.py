#!/usr/bin/env python3
"""
Thin entrypoint that delegates to autovolume.main.run().
One buy/sell cycle per invocation; schedule it with cron or a systemd timer.
"""

from autovolume.main import run


if __name__ == "__main__":
    run()
