"""Unit tests for CLI functionality."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import numpy as np
from click.testing import CliRunner
from PIL import Image

from ink_knockout.cli import ProgressBar, main, recolor_main
from ink_knockout.recolor import SVG_NS


def write_square_png(path: Path, size: int = 24) -> Path:
    image = np.full((size, size, 3), 255, dtype=np.uint8)
    image[8:16, 8:16] = 0
    Image.fromarray(image).save(path)
    return path


class TestProgressBar:
    """Test progress bar functionality."""

    def test_progress_bar_initialization(self):
        """Test progress bar initialization."""
        progress = ProgressBar(5, "Testing")
        assert progress.total_steps == 5
        assert progress.current_step == 0
        assert progress.description == "Testing"

    @patch('ink_knockout.cli.click.echo')
    def test_progress_bar_update(self, mock_echo):
        """Test progress bar update functionality."""
        progress = ProgressBar(3, "Testing")
        progress.update("Step 1")

        assert progress.current_step == 1
        call_args = mock_echo.call_args[0][0]
        assert "Testing:" in call_args
        assert "33.3%" in call_args
        assert "Step 1" in call_args

    @patch('ink_knockout.cli.click.echo')
    def test_progress_bar_completion(self, mock_echo):
        """Test progress bar completion."""
        progress = ProgressBar(2, "Testing")
        progress.update("Step 1")
        progress.update("Step 2")

        assert progress.current_step == 2
        assert "✓ Complete" in mock_echo.call_args[0][0]


class TestKnockoutCommand:
    """Test the ink-knockout command."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_cli_help(self):
        """Test CLI help output."""
        result = self.runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert "Knock the background out" in result.output
        for option in ("--ink", "--gap", "--edge", "--feather", "--bg-tol", "--padding"):
            assert option in result.output

    def test_cli_missing_required_args(self):
        """Test CLI with missing required arguments."""
        result = self.runner.invoke(main, [])
        assert result.exit_code != 0
        assert "Usage:" in result.output

    def test_cli_nonexistent_input_file(self):
        """Test CLI with nonexistent input file."""
        result = self.runner.invoke(main, ['nonexistent_file.png', '-o', 'out.png'])
        assert result.exit_code != 0

    def test_cli_rejects_invalid_feather(self):
        """Test option ranges are enforced."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "in.png")
            result = self.runner.invoke(main, [str(source), '--feather', '-1', '-o', 'x.png'])
            assert result.exit_code != 0

    def test_cli_single_image(self):
        """Test a full run writes a same-size RGBA PNG."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "in.png")
            output = Path(temp_dir) / "out.png"

            result = self.runner.invoke(main, [str(source), '-o', str(output), '--feather', '0'])

            assert result.exit_code == 0, result.output
            assert "Successfully created" in result.output
            with Image.open(output) as img:
                assert img.mode == "RGBA"
                assert img.size == (24, 24)
                alpha = np.array(img)[..., 3]
            assert alpha[0, 0] == 0
            assert alpha[12, 12] == 255

    def test_cli_save_stages_and_profile(self):
        """Test stage masks are written and timings printed."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "doodle.png")
            stages_dir = Path(temp_dir) / "stages"

            result = self.runner.invoke(main, [
                str(source), '-o', str(Path(temp_dir) / "out.png"),
                '--save-stages', str(stages_dir), '--profile', '--verbose',
            ])

            assert result.exit_code == 0, result.output
            assert (stages_dir / "doodle_barrier.png").exists()
            assert (stages_dir / "doodle_ink.png").exists()
            assert "Stage Timings" in result.output
            assert "Otsu threshold" in result.output

    def test_cli_existing_output_declined(self):
        """Test declining the overwrite prompt leaves the file alone."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "in.png")
            output = Path(temp_dir) / "out.png"
            output.write_bytes(b"keep")

            result = self.runner.invoke(main, [str(source), '-o', str(output)], input="n\n")

            assert "Aborted." in result.output
            assert output.read_bytes() == b"keep"

    def test_cli_force_overwrites(self):
        """Test --force skips the prompt."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "in.png")
            output = Path(temp_dir) / "out.png"
            output.write_bytes(b"old")

            result = self.runner.invoke(main, [str(source), '-o', str(output), '--force'])

            assert result.exit_code == 0, result.output
            assert output.read_bytes() != b"old"

    def test_cli_batch(self):
        """Test several inputs are written into the output directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            first = write_square_png(Path(temp_dir) / "a.png")
            second = write_square_png(Path(temp_dir) / "b.png", size=30)
            out_dir = Path(temp_dir) / "cut"

            result = self.runner.invoke(main, [
                str(first), str(second), '-o', str(out_dir), '--workers', '2',
            ])

            assert result.exit_code == 0, result.output
            assert "Wrote 2 images" in result.output
            with Image.open(out_dir / "b.png") as img:
                assert img.size == (30, 30)

    def test_cli_batch_needs_directory(self):
        """Test a file output is rejected for several inputs."""
        with tempfile.TemporaryDirectory() as temp_dir:
            first = write_square_png(Path(temp_dir) / "a.png")
            second = write_square_png(Path(temp_dir) / "b.png")
            target = Path(temp_dir) / "file.png"
            target.write_bytes(b"x")

            result = self.runner.invoke(main, [str(first), str(second), '-o', str(target)])

            assert result.exit_code == 1
            assert "must be a directory" in result.output

    def test_cli_batch_rejects_save_stages(self):
        """Test stage dumps are refused when several inputs are given."""
        with tempfile.TemporaryDirectory() as temp_dir:
            first = write_square_png(Path(temp_dir) / "a.png")
            second = write_square_png(Path(temp_dir) / "b.png")
            stages_dir = Path(temp_dir) / "stages"

            result = self.runner.invoke(main, [
                str(first), str(second), '-o', str(Path(temp_dir) / "cut"),
                '--save-stages', str(stages_dir),
            ])

            assert result.exit_code == 2
            assert "single input only" in result.output
            assert not (Path(temp_dir) / "cut").exists()
            assert not stages_dir.exists()

    @patch('ink_knockout.cli.load_image')
    def test_cli_load_error(self, mock_load_image):
        """Test loader failures are reported with exit status 1."""
        mock_load_image.side_effect = RuntimeError("Failed to load image: broken")
        with tempfile.TemporaryDirectory() as temp_dir:
            source = write_square_png(Path(temp_dir) / "in.png")
            result = self.runner.invoke(main, [str(source), '-o', str(Path(temp_dir) / "o.png")])

        assert result.exit_code == 1
        assert "❌ Error: Failed to load image" in result.output


class TestRecolorCommand:
    """Test the ink-recolor command."""

    SVG = f'<svg xmlns="{SVG_NS}"><g data-name="Hat"><path d="M0 0h1v1z"/></g></svg>'

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def _write_svg(self, directory: str) -> Path:
        path = Path(directory) / "art.svg"
        path.write_text(self.SVG)
        return path

    def test_flat_fill(self):
        """Test a flat fill is written to the output file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = self._write_svg(temp_dir)
            output = Path(temp_dir) / "out.svg"

            result = self.runner.invoke(recolor_main, [
                str(source), '-l', 'Hat', '--fill', '#ff0066', '-o', str(output),
            ])

            assert result.exit_code == 0, result.output
            assert "Filled 1 shapes" in result.output
            assert 'fill="#ff0066"' in output.read_text()

    def test_gradient(self):
        """Test repeated --gradient options form the stops."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = self._write_svg(temp_dir)
            output = Path(temp_dir) / "out.svg"

            result = self.runner.invoke(recolor_main, [
                str(source), '-l', 'Hat', '--gradient', '#000', '--gradient', '#fff',
                '--vertical', '-o', str(output),
            ])

            assert result.exit_code == 0, result.output
            text = output.read_text()
            assert "linearGradient" in text
            assert 'y2="100%"' in text

    def test_requires_exactly_one_operation(self):
        """Test conflicting or missing operations are usage errors."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = self._write_svg(temp_dir)
            output = str(Path(temp_dir) / "out.svg")

            none_chosen = self.runner.invoke(recolor_main, [str(source), '-l', 'Hat', '-o', output])
            both = self.runner.invoke(recolor_main, [
                str(source), '-l', 'Hat', '--fill', '#000', '--soft-light', '0.5', '-o', output,
            ])

        assert none_chosen.exit_code == 2
        assert both.exit_code == 2

    def test_unknown_layer_warns(self):
        """Test an unknown layer is reported but not fatal."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = self._write_svg(temp_dir)
            result = self.runner.invoke(recolor_main, [
                str(source), '-l', 'Cape', '--soft-light', '0.8',
                '-o', str(Path(temp_dir) / "out.svg"),
            ])

        assert result.exit_code == 0, result.output
        assert "Layer 'Cape' not found" in result.output
