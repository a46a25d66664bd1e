"""
opkeysync — export SSH keys from 1Password into ~/.ssh.

Pulls SSH key items out of one or more signed-in 1Password accounts,
names them predictably, and writes them next to whatever keys are
already there. Anything that would be overwritten is copied into a
timestamped backup directory first.
"""

import os

__version__ = "0.1.0"
__author__ = "opkeysync contributors"

SSH_HOME = os.environ.get("OPKEYSYNC_SSH_DIR", "~/.ssh")
