"""
Brainrot Clicker: an idle clicker game state engine.

Layers
------
- core: configuration, logging, events, storage clients
- domain: the game aggregate and badge model
- modules: economy, upgrades, badges, resource scheduling, persistence,
  and the session engine that ties them together
- bot: a thin Discord action surface
"""

__version__ = "1.0.0"
