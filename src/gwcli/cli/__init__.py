"""gwcli command-line interface."""
