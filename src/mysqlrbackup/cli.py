import logging

import click
from rich.logging import RichHandler

from .core import MysqlRbackup
from .errors import BackupError
from .models import RunOptions
from .services.config_loader import ConfigLoader

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, default=False, help="Run verbosely")
@click.option(
    "-s",
    "--slave",
    is_flag=True,
    default=False,
    help="Start / stop the slave (for backups on a slave db)",
)
def main(verbose, slave):
    """Dump, archive and replicate the configured MySQL databases.

    Settings are read from the YAML file named by MYSQL_RBACKUP_CONFIG,
    or from .mysql_rbackup.yml in the working directory.
    """
    logger = logging.getLogger("mysqlrbackup")
    # Progress is INFO: always logged, shown on the console only with --verbose.
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in logging.getLogger().handlers:
        handler.setLevel(logging.NOTSET if verbose else logging.WARNING)

    config_loader = ConfigLoader()
    try:
        config = config_loader.load(config_loader.resolve_path())
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    backup = MysqlRbackup(config=config, options=RunOptions(verbose=verbose, slave_mode=slave))
    raise SystemExit(backup.run())


if __name__ == "__main__":
    main()
