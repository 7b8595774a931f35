"""Core domain layer - entities, interfaces, services and exceptions."""

from ranch_inventory.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
