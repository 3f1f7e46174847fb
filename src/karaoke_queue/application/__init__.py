"""
Application Layer

Contains the session services and the chat command dispatcher.
This layer orchestrates domain objects and infrastructure ports.

Structure:
- commands/: Chat command definitions and dispatcher
- services/: Session store, registry, queue engine and cast orchestrator
- interfaces/: Port interfaces for infrastructure adapters
"""
