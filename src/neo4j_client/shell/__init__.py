"""Session orchestration: option processing, mode dispatch and directive readers."""
