from localizer.main import cli

cli()
