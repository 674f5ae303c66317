from sonar_metrics.cli import cli

cli()
