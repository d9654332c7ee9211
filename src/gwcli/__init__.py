"""gwcli - Google Workspace CLI.

Operate Gmail, Calendar, and Drive from the command line under multiple
named OAuth profiles.
"""

from gwcli.__version__ import __version__

__all__ = ["__version__"]
