"""Game feature modules, each exposing a stateless service over `GameState`."""
