"""CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from chain_llm.io_utils import load_chain_file
from chain_llm.io_utils import parse_chain_text
from chain_llm.io_utils import write_output
from chain_llm.models.chain_call import PromptChainParams
from chain_llm.models.chain_result import PromptChainResponse
from chain_llm.models.engine_config import EngineConfig
from chain_llm.orchestrator import Orchestrator


async def run_chain(
    orch: Orchestrator,
    chain: PromptChainParams,
    llm: str | None,
) -> PromptChainResponse:
    return await orch.run_chain(chain, llm=llm)


def main() -> None:
    parser = argparse.ArgumentParser(prog="chain-llm")
    parser.add_argument("--config", type=str, default="chain-llm.yaml")
    parser.add_argument("--prompts-dir", type=str, action="append", default=[], help="Extra prompt directories")
    chain_group = parser.add_mutually_exclusive_group(required=True)
    chain_group.add_argument("--chain", type=str, help="Path to a chain JSON file")
    chain_group.add_argument("--chain-text", type=str, help="Raw chain JSON")
    parser.add_argument("--llm", type=str, default=None, help="Provider name to use instead of the primary")
    parser.add_argument("--stop-on-error", action="store_true", help="Halt the chain at the first failed call")
    parser.add_argument("--output", type=str, default=None, help="Write the response JSON to this file")
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config_path = Path(args.config)
    config = EngineConfig.load(config_path) if config_path.exists() else EngineConfig()
    orch = Orchestrator(config=config, prompt_roots=[Path(p) for p in args.prompts_dir])

    chain: PromptChainParams
    if args.chain_text is not None:
        chain = parse_chain_text(args.chain_text)
    else:
        chain = load_chain_file(Path(args.chain))
    if args.stop_on_error:
        chain = chain.model_copy(update={"continue_on_error": False})

    # Async entrypoint
    import anyio

    out = anyio.run(run_chain, orch, chain, args.llm)
    rendered = out.model_dump_json(indent=2)
    if args.output:
        write_output(Path(args.output), rendered)
    else:
        print(rendered)
