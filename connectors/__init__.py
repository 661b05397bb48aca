"""
connectors: OAuth integration module for task services.

Provides a small connector framework that handles:
  • OAuth2 authorize-URL generation
  • Code → token exchange per vendor
  • Connection tokens mapped to stored (optionally encrypted) credentials

Each vendor (Todoist, Google Tasks, …) is a subclass of BaseConnector.
"""
