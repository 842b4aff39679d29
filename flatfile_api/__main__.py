from flatfile_api.cli.runner import run_cli

run_cli()
