"""
This file is the entry point for the 'piblingmirror' command-line tool.
It evaluates the pibling mirror virtual attribute against a fixture file or
a directory REST API, and checks provider configurations.
"""
import logging
from pathlib import Path

import httpx
import typer

from common.app_setup import setup_logging, monkeypatch_print, print_and_log, print_error
from common.diagnostics import LoggerDiagnostics
from common.errors import ConfigurationError, NoParentError
from connectors import connections_manager
from connectors.memory_directory_connector import MemoryDirectoryConnector
from directory.models import Location
from provider.config import ARG_NAME_ATTR, ARG_NAME_OBJECTCLASS
from provider.context import DirectoryServerContext
from provider.pibling_mirror import PiblingMirrorProvider
from provider import registry

app = typer.Typer(add_completion=False, help="Evaluate the pibling mirror virtual attribute.")

# Set up logging for the CLI (not daemon)
logger = setup_logging(app_name="piblingmirror", daemon=False)
monkeypatch_print()


def _server_context(data: Path | None, url: str | None, user: str | None,
                    password: str | None) -> DirectoryServerContext:
    diagnostics = LoggerDiagnostics(logging.getLogger("piblingmirror"))
    if data is not None:
        connector = MemoryDirectoryConnector.from_fixture(data)
        return DirectoryServerContext.for_memory(connector, diagnostics)
    rest = connections_manager.get_connector(url, user, password)
    return DirectoryServerContext(
        connection=rest,
        diagnostics=diagnostics,
        naming_contexts=tuple(rest.status.get("naming_contexts", [])),
    )


@app.command()
def generate(dn: str = typer.Argument(..., help="DN of the entry to generate the attribute for"),
             source_attribute: str = typer.Option(..., f"--{ARG_NAME_ATTR}", help="Attribute to mirror"),
             source_objectclass: str = typer.Option(..., f"--{ARG_NAME_OBJECTCLASS}", help="Objectclass of the pibling entries"),
             name: str = typer.Option(None, help="Virtual attribute name (defaults to the source attribute)"),
             data: Path = typer.Option(None, exists=True, dir_okay=False, help="YAML or JSON fixture with the directory entries"),
             url: str = typer.Option(None, help="Base URL of a directory REST API"),
             user: str = typer.Option(None, help="User for the directory REST API"),
             password: str = typer.Option(None, help="Password for the directory REST API"),
             verbose: bool = typer.Option(False, "--verbose", "-v", help="Show the search and debug diagnostics")):
    """Generate the virtual attribute for DN and print its values."""
    if (data is None) == (url is None):
        print_error("Give exactly one of --data or --url.")
        raise typer.Exit(2)
    try:
        location = Location.from_dn(dn)
    except ValueError:
        print_error(f"Invalid DN: {dn}")
        raise typer.Exit(2)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        context = _server_context(data, url, user, password)
    except (ConnectionError, ValueError, TypeError, httpx.HTTPError) as e:
        print_error(f"Cannot open the directory: {e}")
        raise typer.Exit(1)

    attribute_name = name or source_attribute
    raw_config = {ARG_NAME_ATTR: source_attribute, ARG_NAME_OBJECTCLASS: source_objectclass}
    provider = PiblingMirrorProvider()
    try:
        registry.register_provider(attribute_name, provider, context, raw_config)
    except ConfigurationError as e:
        for reason in e.reasons:
            print_error(reason)
        raise typer.Exit(1)

    try:
        if verbose:
            try:
                print_and_log(f"Search: {provider.describe_search(location)}")
            except NoParentError as e:
                print_and_log(f"No search: {e.message}")
        attribute = registry.generate(attribute_name, None, location)
    finally:
        registry.unregister_provider(attribute_name)

    if attribute is None:
        print_and_log(f"No attribute generated for {location}.")
        return
    for value in attribute.values:
        print_and_log(f"{attribute.name}: {value}")


@app.command()
def check_config(source_attribute: str = typer.Option(None, f"--{ARG_NAME_ATTR}"),
                 source_objectclass: str = typer.Option(None, f"--{ARG_NAME_OBJECTCLASS}"),
                 config_file: Path = typer.Option(None, "--config", exists=True, dir_okay=False,
                                                  help="YAML or JSON file with the arguments")):
    """Check whether a provider configuration is acceptable."""
    if config_file is not None:
        raw = config_file
    else:
        raw = {key: value for key, value in ((ARG_NAME_ATTR, source_attribute),
                                             (ARG_NAME_OBJECTCLASS, source_objectclass)) if value is not None}
    reasons: list[str] = []
    if PiblingMirrorProvider().is_configuration_acceptable(raw, reasons):
        print_and_log("Configuration is acceptable.")
        return
    for reason in reasons:
        print_error(reason)
    raise typer.Exit(1)


@app.command()
def show_arguments():
    """List the configuration arguments of the provider."""
    for argument in PiblingMirrorProvider().define_config_arguments():
        required = "required" if argument.required else "optional"
        print_and_log(f"--{argument.name} {argument.placeholder} ({required}): {argument.description}")


if __name__ == "__main__":
    app()
