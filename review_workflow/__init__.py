"""Review space workflow core: spaces, targets and the Q&A processing lifecycle."""
