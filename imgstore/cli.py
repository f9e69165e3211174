"""
Command Line Interface for the image store.
"""

import argparse
import json
import logging
import mimetypes
import sys
from typing import List, Optional

from .errors import ImageStoreError, ValidationError
from .image_service import ImageService
from .reporter import Reporter
from .store_config import StoreConfig


def setup_logging(verbose: bool, level_name: str = 'INFO') -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('imgstore')


def get_config(args: argparse.Namespace) -> StoreConfig:
    """Get store configuration from environment and CLI overrides."""
    config = StoreConfig.from_env()

    if getattr(args, 'upload_dir', None):
        config.upload_dir = args.upload_dir
    if getattr(args, 'public_url', None):
        config.public_url = args.public_url
    if getattr(args, 'quality', None):
        config.default_quality = args.quality

    return config


def get_service(args: argparse.Namespace, logger: logging.Logger) -> ImageService:
    """
    Build the image service from arguments.

    Raises:
        ValueError: If the configuration is invalid
    """
    config = get_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        raise ValueError("Store configuration invalid")
    return ImageService(config, logger=logger)


def print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _run(args: argparse.Namespace, action) -> int:
    """Run a command body, mapping typed errors to exit codes."""
    logger = setup_logging(args.verbose, StoreConfig.from_env().log_level)
    try:
        service = get_service(args, logger)
    except ValueError:
        return 1

    try:
        return action(service, logger)
    except ValidationError as e:
        logger.error(f"{e.code}: {e.message}")
        return 2
    except ImageStoreError as e:
        logger.error(f"{e.code}: {e.message}")
        return 1


def cmd_upload(args: argparse.Namespace) -> int:
    """Execute upload command."""
    def action(service: ImageService, logger: logging.Logger) -> int:
        try:
            with open(args.file, 'rb') as f:
                data = f.read()
        except FileNotFoundError:
            logger.error(f"File not found: {args.file}")
            return 1
        except OSError as e:
            logger.error(f"Could not read {args.file}: {e}")
            return 1

        mime_type = args.mime_type or mimetypes.guess_type(args.file)[0]
        result = service.upload(data, mime_type, folder=args.folder)
        print_json(result.to_dict())
        return 0

    return _run(args, action)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    def action(service: ImageService, logger: logging.Logger) -> int:
        listing = service.list_images(
            folder=args.folder, page=args.page, limit=args.limit, sort=args.sort
        )
        if args.json:
            print_json(listing)
        else:
            Reporter().report_listing(listing)
        return 0

    return _run(args, action)


def cmd_stats(args: argparse.Namespace) -> int:
    """Execute stats command."""
    def action(service: ImageService, logger: logging.Logger) -> int:
        stats = service.compute_stats()
        if args.json:
            print_json(stats.to_dict())
        else:
            Reporter().report_stats(stats, service.config.upload_dir)
        return 0

    return _run(args, action)


def cmd_delete(args: argparse.Namespace) -> int:
    """Execute delete command."""
    def action(service: ImageService, logger: logging.Logger) -> int:
        deleted = service.delete_image(args.path)
        print_json({'deleted': deleted})
        return 0

    return _run(args, action)


def cmd_optimize(args: argparse.Namespace) -> int:
    """Execute optimize command."""
    def action(service: ImageService, logger: logging.Logger) -> int:
        params = {'w': args.width, 'h': args.height, 'q': args.q, 'fit': args.fit}
        data = service.optimize(args.path, params)
        try:
            with open(args.output, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Could not write {args.output}: {e}")
            return 1
        logger.info(f"Wrote {len(data)} bytes to {args.output}")
        return 0

    return _run(args, action)


def add_store_arguments(parser: argparse.ArgumentParser) -> None:
    """Add store configuration arguments to a parser."""
    group = parser.add_argument_group('Store')
    group.add_argument('--upload-dir', metavar='PATH', help='Override UPLOAD_DIR')
    group.add_argument('--public-url', metavar='URL', help='Override PUBLIC_URL')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='imgstore',
        description='Image upload store with WebP derivatives',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  upload:   python -m imgstore upload photo.jpg --folder blog
  list:     python -m imgstore list --folder blog --page 2
  stats:    python -m imgstore stats
  delete:   python -m imgstore delete blog/2026/10/1760000000000-abc123.webp
  optimize: python -m imgstore optimize blog/2026/10/1760000000000-abc123.webp -w 100 -o out.webp

Configuration comes from UPLOAD_DIR, PUBLIC_URL, DEFAULT_QUALITY, MAX_FILE_SIZE,
ALLOWED_MIME_TYPES and LOG_LEVEL; --upload-dir and --public-url override them.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Upload command
    upload_parser = subparsers.add_parser('upload', help='Store an image and its derivatives')
    upload_parser.add_argument('file', help='Image file to upload')
    upload_parser.add_argument('--folder', default='general', help='Target folder (default: general)')
    upload_parser.add_argument('--mime-type', help='Declared MIME type (default: guessed from name)')
    upload_parser.add_argument('--quality', type=int, help='Override DEFAULT_QUALITY')
    upload_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_store_arguments(upload_parser)

    # List command
    list_parser = subparsers.add_parser('list', help='List stored originals')
    list_parser.add_argument('--folder', help='Only list this folder')
    list_parser.add_argument('--page', type=int, default=1, help='Page number (default: 1)')
    list_parser.add_argument('--limit', type=int, default=20, help='Items per page (default: 20)')
    list_parser.add_argument('--sort', choices=['date', 'size', 'name'], default='date',
                             help='Sort order (default: date)')
    list_parser.add_argument('--json', action='store_true', help='Print JSON instead of a report')
    list_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_store_arguments(list_parser)

    # Stats command
    stats_parser = subparsers.add_parser('stats', help='Show usage statistics')
    stats_parser.add_argument('--json', action='store_true', help='Print JSON instead of a report')
    stats_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_store_arguments(stats_parser)

    # Delete command
    delete_parser = subparsers.add_parser('delete', help='Delete an image and its derivatives')
    delete_parser.add_argument('path', help='Stored path relative to the upload root')
    delete_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_store_arguments(delete_parser)

    # Optimize command
    opt_parser = subparsers.add_parser('optimize', help='Write an on-the-fly variant')
    opt_parser.add_argument('path', help='Stored path relative to the upload root')
    opt_parser.add_argument('-o', '--output', required=True, help='Output file')
    opt_parser.add_argument('-w', '--width', help='Target width (1-5000)')
    opt_parser.add_argument('--height', help='Target height (1-5000)')
    opt_parser.add_argument('-q', help='Quality (1-100)')
    opt_parser.add_argument('--fit', default='inside',
                            help='cover, contain, fill, inside or outside (default: inside)')
    opt_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_store_arguments(opt_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == 'upload':
        return cmd_upload(args)
    elif args.command == 'list':
        return cmd_list(args)
    elif args.command == 'stats':
        return cmd_stats(args)
    elif args.command == 'delete':
        return cmd_delete(args)
    elif args.command == 'optimize':
        return cmd_optimize(args)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
