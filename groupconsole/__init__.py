"""User group console and legacy object migration tooling.

To use the Flask app:
    from groupconsole.flask_app import create_app

To migrate legacy object definitions:
    from groupconsole.conftool import parse_legacy_objects, migrate_objects
"""
# flask_app is not imported here so the conftool CLI runs without Flask
