# src/app.py          <-- keep it at the top level of the ZIP
# Handler path:  app.handler
#
# What it does:
#   • Re-exports the real handler so the Lambda configuration does not need
#     to know the package layout

from alarm_notifier.app import handler

__all__ = ["handler"]
