#!/usr/bin/env python3
"""
Veil Command Line Interface

Hide payloads in ordinary text with invisible Unicode tags, recover them,
and classify pasted input.

Usage:
    veil encode [OPTIONS]
    veil decode [OPTIONS]
    veil analyze [OPTIONS]
    veil ratio [OPTIONS]
    veil identity [OPTIONS]
    veil --version
    veil --help
"""

import sys
import os
import argparse
import base64
import json
import logging
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'python-core'))

from stego import TagStego
from veil.keys import format_key_input
from veil.messages import TaskType
from veil.service import WorkerService

# Seconds to wait for a single worker task
TASK_TIMEOUT = 30


class VeilCLI:
    """Main CLI application for Veil."""

    def __init__(self, service: Optional[WorkerService] = None):
        self._service = service
        self._owns_service = service is None
        self.stego = TagStego()

    @property
    def service(self) -> WorkerService:
        if self._service is None:
            self._service = WorkerService()
        return self._service

    def run(self, args: list):
        """Run the CLI with given arguments."""
        parser = self.create_parser()
        parsed = parser.parse_args(args)

        if parsed.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

        if hasattr(parsed, 'func'):
            try:
                return parsed.func(parsed)
            except Exception as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            finally:
                if self._owns_service and self._service is not None:
                    self._service.close()
                    self._service = None
        else:
            parser.print_help()
            return 0

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="veil",
            description="Invisible text steganography with Unicode tags",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    veil encode --input message.bin --cover "See you at noon" --output hidden.txt
    veil decode --input hidden.txt --output message.bin
    veil analyze --input pasted.txt
    veil ratio --size 1638 --cover "A long enough cover sentence"
    veil identity --key <base64 key> --name alice --cover "Add me!"
            """
        )

        parser.add_argument(
            '--version',
            action='version',
            version='Veil v1.0.0'
        )
        parser.add_argument('--verbose', '-v', action='store_true',
                            help='Enable debug logging')

        subparsers = parser.add_subparsers(title='commands', dest='command')

        self.add_encode_command(subparsers)
        self.add_decode_command(subparsers)
        self.add_analyze_command(subparsers)
        self.add_ratio_command(subparsers)
        self.add_identity_command(subparsers)

        return parser

    def add_encode_command(self, subparsers):
        """Add encode command to parser."""
        cmd = subparsers.add_parser('encode', help='Hide a payload in text')
        cmd.add_argument('--input', '-i', required=True, help="Payload file ('-' for stdin)")
        cmd.add_argument('--cover', '-c', default='', help='Visible cover text')
        cmd.add_argument('--output', '-o', help='Output file (default: stdout)')
        cmd.set_defaults(func=self.handle_encode)

    def add_decode_command(self, subparsers):
        """Add decode command to parser."""
        cmd = subparsers.add_parser('decode', help='Recover a hidden payload')
        cmd.add_argument('--input', '-i', required=True, help="Text file ('-' for stdin)")
        cmd.add_argument('--output', '-o', help='Output file (default: stdout)')
        cmd.add_argument('--lenient', '-l', action='store_true',
                         help='Ignore checksum mismatches')
        cmd.add_argument('--base64', '-b', action='store_true',
                         help='Output as base64')
        cmd.set_defaults(func=self.handle_decode)

    def add_analyze_command(self, subparsers):
        """Add analyze command to parser."""
        cmd = subparsers.add_parser('analyze', help='Classify pasted text')
        cmd.add_argument('--input', '-i', required=True, help="Text file ('-' for stdin)")
        cmd.set_defaults(func=self.handle_analyze)

    def add_ratio_command(self, subparsers):
        """Add ratio command to parser."""
        cmd = subparsers.add_parser('ratio', help='Score a cover text for a payload size')
        cmd.add_argument('--size', '-s', type=int, required=True, help='Payload size in bytes')
        cmd.add_argument('--cover', '-c', required=True, help='Candidate cover text')
        cmd.set_defaults(func=self.handle_ratio)

    def add_identity_command(self, subparsers):
        """Add identity command to parser."""
        cmd = subparsers.add_parser('identity', help='Build shareable identity text')
        cmd.add_argument('--key', '-k', required=True, help='Base64 public key')
        cmd.add_argument('--name', '-n', help='Username to share with the key')
        cmd.add_argument('--cover', '-c', help='Hide the identity in this cover text')
        cmd.add_argument('--output', '-o', help='Output file (default: stdout)')
        cmd.set_defaults(func=self.handle_identity)

    # Input / output helpers

    @staticmethod
    def read_bytes(path: str) -> bytes:
        if path == '-':
            return sys.stdin.buffer.read()
        with open(path, 'rb') as f:
            return f.read()

    @staticmethod
    def read_text(path: str) -> str:
        if path == '-':
            return sys.stdin.read()
        with open(path, encoding='utf-8') as f:
            return f.read()

    @staticmethod
    def write_output(data, path: Optional[str]) -> None:
        if path:
            mode = 'wb' if isinstance(data, bytes) else 'w'
            encoding = None if isinstance(data, bytes) else 'utf-8'
            with open(path, mode, encoding=encoding) as f:
                f.write(data)
        elif isinstance(data, bytes):
            sys.stdout.buffer.write(data)
            sys.stdout.flush()
        else:
            print(data)

    def run_task(self, task_type: TaskType, payload):
        return self.service.execute(task_type, payload).result(timeout=TASK_TIMEOUT)

    # Command handlers

    def handle_encode(self, args):
        """Handle encode command."""
        payload = self.read_bytes(args.input)
        text = self.run_task(TaskType.EMBED_STEALTH, {'data': payload, 'cover': args.cover})
        self.write_output(text, args.output)
        return 0

    def handle_decode(self, args):
        """Handle decode command."""
        text = self.read_text(args.input)
        payload = self.run_task(TaskType.EXTRACT_STEALTH, {'text': text, 'lenient': args.lenient})
        if args.base64:
            payload = self.run_task(TaskType.ENCODE_BINARY, {'data': payload})
        self.write_output(payload, args.output)
        return 0

    def handle_analyze(self, args):
        """Handle analyze command."""
        text = self.read_text(args.input)
        analysis = self.run_task(TaskType.ANALYZE_INPUT, {'input': text})

        binary = analysis.get('extracted_binary')
        if binary is not None:
            analysis['extracted_binary'] = base64.b64encode(binary).decode('ascii')

        print(json.dumps(analysis, indent=2, ensure_ascii=False))
        return 0

    def handle_ratio(self, args):
        """Handle ratio command."""
        score = self.stego.stealth_ratio(args.size, args.cover)
        print(f"Stealth ratio: {score}/100")
        return 0

    def handle_identity(self, args):
        """Handle identity command."""
        text = format_key_input(args.key, args.name)
        if args.cover is not None:
            text = self.run_task(TaskType.EMBED_STEALTH, {'data': text.encode('utf-8'), 'cover': args.cover})
        self.write_output(text, args.output)
        return 0


def main():
    """Main entry point."""
    cli = VeilCLI()
    sys.exit(cli.run(sys.argv[1:]))


if __name__ == '__main__':
    main()
