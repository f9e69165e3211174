"""Tests for CLI module."""

import json
import os

import pytest
from imgstore.cli import create_parser, get_config, main


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_created(self):
        """Test parser is created successfully."""
        parser = create_parser()
        assert parser is not None

    def test_upload_command(self):
        """Test upload command parsing."""
        parser = create_parser()
        args = parser.parse_args(['upload', 'photo.jpg', '--folder', 'blog', '--quality', '90'])

        assert args.command == 'upload'
        assert args.file == 'photo.jpg'
        assert args.folder == 'blog'
        assert args.quality == 90

    def test_upload_default_folder(self):
        """Test the upload folder defaults to general."""
        args = create_parser().parse_args(['upload', 'photo.jpg'])

        assert args.folder == 'general'

    def test_list_command(self):
        """Test list command parsing."""
        parser = create_parser()
        args = parser.parse_args(['list', '--page', '2', '--limit', '5', '--sort', 'size'])

        assert (args.page, args.limit, args.sort) == (2, 5, 'size')

    def test_list_rejects_unknown_sort(self):
        """Test sort choices are enforced by the parser."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['list', '--sort', 'random'])

    def test_optimize_command(self):
        """Test optimize command parsing."""
        parser = create_parser()
        args = parser.parse_args(['optimize', 'blog/2026/10/a.webp', '-w', '100', '-o', 'out.webp'])

        assert args.width == '100'
        assert args.output == 'out.webp'
        assert args.fit == 'inside'

    def test_store_overrides(self, monkeypatch):
        """Test --upload-dir and --public-url override the environment."""
        monkeypatch.setenv('UPLOAD_DIR', '/from/env')
        args = create_parser().parse_args(
            ['stats', '--upload-dir', '/from/cli', '--public-url', 'https://cdn.example.com']
        )

        config = get_config(args)

        assert config.upload_dir == '/from/cli'
        assert config.public_url == 'https://cdn.example.com'


class TestMain:
    """Tests for main entry point."""

    @pytest.fixture
    def photo(self, tmp_path, image_factory):
        path = tmp_path / 'photo.jpg'
        path.write_bytes(image_factory((400, 300)))
        return str(path)

    def upload(self, photo, upload_root, capsys):
        assert main(['upload', photo, '--folder', 'blog', '--upload-dir', upload_root]) == 0
        return json.loads(capsys.readouterr().out)

    def test_no_command(self):
        """Test running without command shows help."""
        result = main([])
        assert result == 1

    def test_upload(self, photo, upload_root, capsys):
        """Test uploading a file prints the result."""
        result = self.upload(photo, upload_root, capsys)

        assert result['folder'] == 'blog'
        assert (result['width'], result['height']) == (400, 300)
        assert os.path.isfile(os.path.join(upload_root, result['path']))

    def test_upload_missing_file(self, upload_root, tmp_path):
        """Test uploading a missing file."""
        assert main(['upload', str(tmp_path / 'nope.jpg'), '--upload-dir', upload_root]) == 1

    def test_upload_directory(self, upload_root, tmp_path):
        """Test uploading a directory reports an error instead of raising."""
        folder = tmp_path / 'photos.jpg'
        folder.mkdir()

        assert main(['upload', str(folder), '--upload-dir', upload_root]) == 1

    def test_optimize_unwritable_output(self, photo, upload_root, tmp_path, capsys):
        """Test an output path that cannot be written reports an error."""
        uploaded = self.upload(photo, upload_root, capsys)
        output = tmp_path / 'missing-dir' / 'out.webp'

        assert main([
            'optimize', uploaded['path'], '-o', str(output), '--upload-dir', upload_root,
        ]) == 1
        assert not output.exists()

    def test_upload_rejected_type(self, tmp_path, upload_root):
        """Test a disallowed type exits with a validation status."""
        path = tmp_path / 'notes.txt'
        path.write_text('hello')

        assert main(['upload', str(path), '--upload-dir', upload_root]) == 2

    def test_list_json(self, photo, upload_root, capsys):
        """Test listing as JSON."""
        uploaded = self.upload(photo, upload_root, capsys)

        assert main(['list', '--json', '--upload-dir', upload_root]) == 0

        listing = json.loads(capsys.readouterr().out)
        assert [i['path'] for i in listing['images']] == [uploaded['path']]

    def test_list_report(self, photo, upload_root, capsys):
        """Test listing as a report."""
        self.upload(photo, upload_root, capsys)

        assert main(['list', '--upload-dir', upload_root]) == 0

        assert 'Page 1 of 1' in capsys.readouterr().out

    def test_list_bad_page(self, upload_root):
        """Test invalid pagination exits with a validation status."""
        assert main(['list', '--page', '0', '--upload-dir', upload_root]) == 2

    def test_stats(self, photo, upload_root, capsys):
        """Test stats as JSON."""
        self.upload(photo, upload_root, capsys)

        assert main(['stats', '--json', '--upload-dir', upload_root]) == 0

        stats = json.loads(capsys.readouterr().out)
        assert stats['totalImages'] == 1
        assert stats['folders']['blog']['count'] == 1

    def test_delete(self, photo, upload_root, capsys):
        """Test deleting an upload and then deleting it again."""
        uploaded = self.upload(photo, upload_root, capsys)

        assert main(['delete', uploaded['path'], '--upload-dir', upload_root]) == 0
        assert len(json.loads(capsys.readouterr().out)['deleted']) == 3

        assert main(['delete', uploaded['path'], '--upload-dir', upload_root]) == 1

    def test_optimize(self, photo, upload_root, tmp_path, capsys):
        """Test writing an on-the-fly variant."""
        uploaded = self.upload(photo, upload_root, capsys)
        output = tmp_path / 'out.webp'

        assert main([
            'optimize', uploaded['path'], '-w', '100', '-o', str(output),
            '--upload-dir', upload_root,
        ]) == 0

        from PIL import Image
        with Image.open(output) as img:
            assert img.size == (100, 75)

    def test_invalid_config(self, upload_root, monkeypatch):
        """Test an invalid configuration exits with an error."""
        monkeypatch.setenv('DEFAULT_QUALITY', '500')

        assert main(['stats', '--upload-dir', upload_root]) == 1
