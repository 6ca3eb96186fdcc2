"""DumAI chat back-end: identities, chat sessions and message persistence."""
