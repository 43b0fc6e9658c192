"""Infrastructure layer — ambient concerns shared by every alf command.

Modules:
    settings        ALF_* environment / dotenv loading into AlfConfig.
    logging_config  Root logger setup (stderr, or a file for the controller).
    metrics         Prometheus registry written to a textfile after indexing.
"""
