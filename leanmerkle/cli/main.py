"""
leanmerkle CLI - inspect and grow a persistent lean Merkle tree.

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from leanmerkle.cli.models import ProofFile, TreeStateFile, parse_node
from leanmerkle.core.config import load_config
from leanmerkle.core.storage import TreeStorageManager
from leanmerkle.core.tree import (
    LeanMerkleTree,
    MerkleTreeError,
    from_storage,
    get_engine,
    verify_proof,
)
from leanmerkle.crypto import bytes_to_hex
from leanmerkle.utils.logger import get_logger, setup_logging

logger = get_logger("cli")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (overrides config)")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False), help="JSON or TOML config file")
@click.option("--namespace", default=None, help="Tree name inside the database")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, config_path, namespace):
    """Lean Merkle accumulator with circuit-compatible proofs"""
    try:
        cfg = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(f"Invalid config: {e}")

    if data_dir:
        cfg.data_dir = Path(data_dir).expanduser()
    if namespace:
        cfg.namespace = namespace

    level = logging.DEBUG if debug else getattr(logging, cfg.log_level.upper(), logging.INFO)
    setup_logging(level=level, log_dir=str(cfg.log_dir), log_to_file=cfg.log_to_file)
    cfg.ensure_dirs()

    try:
        engine = get_engine(cfg.hash_engine)
    except ValueError as e:
        raise click.ClickException(str(e))

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["engine"] = engine
    ctx.obj["storage"] = TreeStorageManager(
        cfg.data_dir,
        db_name=cfg.db_name,
        engine=engine,
        verify_on_load=cfg.verify_on_load,
    )


def _load(ctx):
    cfg = ctx.obj["config"]
    return ctx.obj["storage"].load_or_create(cfg.namespace)


def _save(ctx, tree):
    cfg = ctx.obj["config"]
    ctx.obj["storage"].save(tree, cfg.namespace)


# =============================================================================
# Tree Commands
# =============================================================================


@cli.command("insert")
@click.argument("leaves", nargs=-1, required=True)
@click.pass_context
def insert(ctx, leaves):
    """Append one or more leaves (hex or decimal)"""
    cfg = ctx.obj["config"]
    engine = ctx.obj["engine"]

    try:
        values = [parse_node(v, engine.digest_size) for v in leaves]
    except ValueError as e:
        raise click.ClickException(str(e))

    tree = _load(ctx)
    if cfg.max_leaves is not None and len(tree) + len(values) > cfg.max_leaves:
        raise click.ClickException(
            f"Tree '{cfg.namespace}' is limited to {cfg.max_leaves} leaves"
        )

    for value in values:
        index = tree.insert(value)
        click.echo(f"{index} {bytes_to_hex(value)}")
    _save(ctx, tree)
    logger.info(f"Appended {len(values)} leaves to '{cfg.namespace}'")

    click.echo(f"root {bytes_to_hex(tree.get_root())}")


@cli.command("root")
@click.pass_context
def root(ctx):
    """Print the current root"""
    click.echo(bytes_to_hex(_load(ctx).get_root()))


@cli.command("info")
@click.pass_context
def info(ctx):
    """Show tree statistics"""
    cfg = ctx.obj["config"]
    tree = _load(ctx)
    click.echo(f"Tree:    {cfg.namespace}")
    click.echo(f"Engine:  {tree.engine.name}")
    click.echo(f"Leaves:  {tree.get_leaf_count()}")
    click.echo(f"Depth:   {tree.get_depth()}")
    click.echo(f"Root:    {bytes_to_hex(tree.get_root())}")


@cli.command("leaf")
@click.argument("index", type=int)
@click.pass_context
def leaf(ctx, index):
    """Print the leaf at INDEX"""
    try:
        click.echo(bytes_to_hex(_load(ctx).get_leaf(index)))
    except MerkleTreeError as e:
        raise click.ClickException(str(e))


# =============================================================================
# Proof Commands
# =============================================================================


@cli.command("prove")
@click.argument("index", type=int)
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write the proof JSON here")
@click.option("--circuit-input", type=click.Path(dir_okay=False), default=None, help="Write circuit witness input JSON here")
@click.pass_context
def prove(ctx, index, output, circuit_input):
    """Generate an inclusion proof for the leaf at INDEX"""
    cfg = ctx.obj["config"]
    tree = _load(ctx)

    try:
        proof = tree.generate_proof(index)
    except MerkleTreeError as e:
        raise click.ClickException(str(e))

    text = ProofFile.from_proof(proof).model_dump_json(indent=2)
    if output:
        Path(output).write_text(text)
        click.echo(f"✓ Proof written to {output}")
    else:
        click.echo(text)

    if circuit_input:
        try:
            witness = proof.to_circuit_input(cfg.max_depth)
        except ValueError as e:
            raise click.ClickException(f"Cannot build circuit input: {e}")
        Path(circuit_input).write_text(json.dumps(witness, indent=2))
        click.echo(f"✓ Circuit input written to {circuit_input}")


@cli.command("verify")
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--root", "root_hex", default=None, help="Expected root (defaults to the stored tree's root)")
@click.pass_context
def verify(ctx, proof_file, root_hex):
    """Check a proof file against a root"""
    engine = ctx.obj["engine"]

    try:
        proof = ProofFile.model_validate_json(Path(proof_file).read_text()).to_proof()
        expected = parse_node(root_hex, engine.digest_size) if root_hex else _load(ctx).get_root()
    except (ValidationError, ValueError) as e:
        raise click.ClickException(f"Invalid input: {e}")

    if verify_proof(proof, root=expected, engine=engine):
        click.echo(f"✓ Leaf {proof.leaf_index} is included under {bytes_to_hex(expected)}")
    else:
        raise click.ClickException(f"Proof does not match root {bytes_to_hex(expected)}")


# =============================================================================
# State File Commands
# =============================================================================


@cli.command("export")
@click.argument("state_file", type=click.Path(dir_okay=False))
@click.option("--scope", default=None, help="Scope label stored with the state")
@click.pass_context
def export(ctx, state_file, scope):
    """Write leaves, depth and root to a JSON state file"""
    tree = _load(ctx)
    state = TreeStateFile(
        commitments=[bytes_to_hex(leaf) for leaf in tree.get_leaves()],
        scope=scope,
        depth=tree.get_depth(),
        root=bytes_to_hex(tree.get_root()),
    )
    Path(state_file).write_text(state.model_dump_json(indent=2, exclude_none=True))
    click.echo(f"✓ Exported {len(tree)} leaves to {state_file}")


@cli.command("import")
@click.argument("state_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--force", is_flag=True, help="Replace an existing tree")
@click.pass_context
def import_state(ctx, state_file, force):
    """Load a JSON state file into the database

    Depth and root, when present, are checked against the leaves.
    """
    cfg = ctx.obj["config"]
    engine = ctx.obj["engine"]
    storage = ctx.obj["storage"]

    if storage.has_tree(cfg.namespace) and not force:
        raise click.ClickException(f"Tree '{cfg.namespace}' exists, use --force to replace it")

    try:
        state = TreeStateFile.model_validate_json(Path(state_file).read_text())
    except ValidationError as e:
        raise click.ClickException(f"Invalid state file: {e}")

    leaves = state.leaves()
    if state.depth is not None and state.root is not None:
        try:
            tree = from_storage(leaves, state.depth, parse_node(state.root), engine=engine, verify=True)
        except MerkleTreeError as e:
            raise click.ClickException(str(e))
    else:
        tree = LeanMerkleTree(engine)
        tree.insert_many(leaves)

    storage.save(tree, cfg.namespace)
    click.echo(f"✓ Imported {len(tree)} leaves, root {bytes_to_hex(tree.get_root())}")


if __name__ == "__main__":
    cli()
