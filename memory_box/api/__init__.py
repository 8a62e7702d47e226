from memory_box.api.app import create_app, default_generator_factory

__all__ = ["create_app", "default_generator_factory"]
