"""Template handling: container access, tag extraction, filling, tag insertion."""
