"""
Service Organization
====================
Services are organized by their role:

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: LogbookService, ChatService, CommunityService

**ai/**
  Generative assistant: backend transport, response schemas and the typed
  AgronomyAdvisor used by the application services.
"""
