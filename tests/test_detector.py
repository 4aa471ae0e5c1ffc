"""
Tests for ridprobe platform detection using injected collaborators and mocked subprocess
"""
import subprocess
from unittest.mock import patch, MagicMock

import pytest

from ridprobe.config import RidprobeConfig
from ridprobe.platform.detector import (
    PlatformDetector,
    PlatformIdentity,
    detect_current_platform,
    run_architecture_command,
)
from ridprobe.platform.errors import ExternalCommandError, UnsupportedPlatformError
from ridprobe.platform.fallback import StaticRuntimeIdFallback
from ridprobe.platform.release_info import DistributionIdentity
from ridprobe.platform.runtime_ids import OSKind


def uname(output):
    """Architecture command stub returning fixed output"""
    return lambda: output


def failing_uname():
    raise FileNotFoundError("uname: not found")


@pytest.fixture
def release_file(tmp_path):
    """Write an os-release file and return its path"""
    def _create(content: str, name: str = 'os-release'):
        path = tmp_path / name
        path.write_text(content, encoding='utf-8')
        return path
    return _create


def linux_detector(release_files, arch='x86_64\n', **kwargs):
    return PlatformDetector(
        platform_name='linux',
        run_command=uname(arch),
        release_files=release_files,
        eol='\n',
        **kwargs
    )


class TestOSDetection:
    """Mapping host platform strings"""

    @pytest.mark.parametrize('platform_name,expected', [
        ('win32', OSKind.WINDOWS),
        ('darwin', OSKind.MACOS),
        ('linux', OSKind.LINUX),
    ])
    def test_supported(self, platform_name, expected):
        assert PlatformDetector(platform_name=platform_name).detect_os() is expected

    @pytest.mark.parametrize('platform_name', ['freebsd', 'sunos5', 'cygwin', 'aix'])
    def test_unsupported_is_fatal(self, platform_name):
        with pytest.raises(UnsupportedPlatformError):
            PlatformDetector(platform_name=platform_name, run_command=uname('x86_64')).detect()


class TestWindowsArchitecture:
    """Environment-based architecture on Windows"""

    def test_native_x86(self):
        detector = PlatformDetector(platform_name='win32', environ={'PROCESSOR_ARCHITECTURE': 'x86'})
        info = detector.detect()
        assert info.architecture == 'x86'
        assert info.runtime_id == 'win7-x86'
        assert info.distribution is None

    def test_wow64_reports_x64(self):
        environ = {'PROCESSOR_ARCHITECTURE': 'x86', 'PROCESSOR_ARCHITEW6432': 'AMD64'}
        info = PlatformDetector(platform_name='win32', environ=environ).detect()
        assert info.architecture == 'x86_64'
        assert info.runtime_id == 'win7-x64'

    def test_amd64(self):
        info = PlatformDetector(platform_name='win32', environ={'PROCESSOR_ARCHITECTURE': 'AMD64'}).detect()
        assert info.architecture == 'x86_64'

    def test_missing_variables(self):
        info = PlatformDetector(platform_name='win32', environ={}).detect()
        assert info.architecture == 'x86_64'

    def test_command_never_run(self):
        run_command = MagicMock(return_value='x86_64')
        PlatformDetector(platform_name='win32', environ={}, run_command=run_command).detect()
        run_command.assert_not_called()


class TestUnixArchitecture:
    """Architecture from `uname -m` on macOS and Linux"""

    def test_macos_output_trimmed(self):
        info = PlatformDetector(platform_name='darwin', run_command=uname('x86_64\n')).detect()
        assert info.architecture == 'x86_64'
        assert info.runtime_id == 'osx.10.11-x64'
        assert info.distribution is None

    def test_macos_arm_has_no_runtime_id(self):
        info = PlatformDetector(platform_name='darwin', run_command=uname('arm64\n')).detect()
        assert info.architecture == 'arm64'
        assert info.runtime_id is None

    def test_empty_output_gives_no_architecture(self):
        info = PlatformDetector(platform_name='darwin', run_command=uname('')).detect()
        assert info.architecture is None
        assert info.runtime_id is None

    def test_command_failure_is_fatal(self):
        detector = PlatformDetector(platform_name='darwin', run_command=failing_uname)
        with pytest.raises(ExternalCommandError):
            detector.detect()

    def test_command_failure_is_fatal_on_linux(self, tmp_path):
        detector = PlatformDetector(platform_name='linux', run_command=failing_uname,
                                    release_files=[tmp_path / 'missing'])
        with pytest.raises(ExternalCommandError):
            detector.detect()


class TestRunArchitectureCommand:
    """Default subprocess-backed command runner"""

    @patch('ridprobe.platform.detector.subprocess.run')
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = MagicMock(stdout='x86_64\n', returncode=0)
        assert run_architecture_command() == 'x86_64\n'
        args, kwargs = mock_run.call_args
        assert args[0] == ['uname', '-m']
        assert kwargs['shell'] is False

    @patch('ridprobe.platform.detector.subprocess.run')
    def test_default_command_is_not_shared(self, mock_run):
        mock_run.return_value = MagicMock(stdout='aarch64\n', returncode=0)
        run_architecture_command()
        mock_run.call_args.args[0].append('-a')
        run_architecture_command()
        assert mock_run.call_args.args[0] == ['uname', '-m']

    @patch('ridprobe.platform.detector.subprocess.run')
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("No such file or directory: 'uname'")
        with pytest.raises(ExternalCommandError) as exc_info:
            run_architecture_command()
        assert exc_info.value.command == ['uname', '-m']

    @patch('ridprobe.platform.detector.subprocess.run')
    def test_non_zero_exit(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, ['uname', '-m'])
        with pytest.raises(ExternalCommandError):
            run_architecture_command()


class TestLinuxDetection:
    """Full Linux detection with release files"""

    def test_ubuntu(self, release_file):
        path = release_file('ID=ubuntu\nVERSION_ID="16.04"\n')
        info = linux_detector([path]).detect()
        assert info.os_kind is OSKind.LINUX
        assert info.architecture == 'x86_64'
        assert info.distribution == DistributionIdentity('ubuntu', '16.04')
        assert info.runtime_id == 'ubuntu.16.04-x64'

    def test_secondary_release_file(self, release_file, tmp_path):
        path = release_file('ID=linuxmint\nVERSION_ID="18.1"\n', name='usr-lib-os-release')
        info = linux_detector([tmp_path / 'missing', path]).detect()
        assert info.distribution.name == 'linuxmint'
        assert info.runtime_id == 'ubuntu.16.04-x64'

    def test_no_release_files(self, tmp_path):
        info = linux_detector([tmp_path / 'a', tmp_path / 'b']).detect()
        assert info.distribution == DistributionIdentity('unknown', 'unknown')
        assert info.runtime_id is None

    def test_unrecognized_distro_keeps_other_fields(self, release_file):
        path = release_file('ID=mystery\nVERSION_ID="1"\n')
        info = linux_detector([path]).detect()
        assert info.runtime_id is None
        assert info.os_kind is OSKind.LINUX
        assert info.architecture == 'x86_64'
        assert info.distribution.name == 'mystery'

    def test_id_like_ancestor(self, release_file):
        path = release_file('ID=neon\nID_LIKE="ubuntu debian"\nVERSION_ID="14.04"\n')
        info = linux_detector([path]).detect()
        assert info.runtime_id == 'ubuntu.14.04-x64'

    def test_fallback_adopted(self, release_file):
        path = release_file('ID=mystery\nVERSION_ID="1"\n')
        info = linux_detector([path]).detect(StaticRuntimeIdFallback('ubuntu.16.04-x64'))
        assert info.runtime_id == 'ubuntu.16.04-x64'

    def test_arm_has_no_runtime_id(self, release_file):
        path = release_file('ID=ubuntu\nVERSION_ID="16.04"\n')
        info = linux_detector([path], arch='aarch64\n').detect()
        assert info.architecture == 'aarch64'
        assert info.runtime_id is None

    def test_detector_keeps_last_result(self, release_file):
        path = release_file('ID=debian\nVERSION_ID="8"\n')
        detector = linux_detector([path])
        info = detector.detect()
        assert detector.info is info

    def test_verbose_prints_diagnostics(self, release_file):
        path = release_file('ID=mystery\n')
        with patch('ridprobe.platform.detector.console') as mock_console:
            linux_detector([path], verbose=True).detect()
        printed = ' '.join(str(c.args[0]) for c in mock_console.print.call_args_list)
        assert 'uname -m' in printed
        assert str(path) in printed
        assert 'No runtime id' in printed


class TestPlatformIdentity:
    """Value object behaviour"""

    def test_create_swallows_resolution_failure(self):
        info = PlatformIdentity.create(OSKind.LINUX, 'x86_64', DistributionIdentity('mystery', '1'))
        assert info.runtime_id is None

    def test_create_resolves(self):
        info = PlatformIdentity.create(OSKind.WINDOWS, 'x86')
        assert info.runtime_id == 'win7-x86'

    def test_predicates(self):
        info = PlatformIdentity(OSKind.MACOS, 'x86_64')
        assert info.is_macos()
        assert not info.is_windows()
        assert not info.is_linux()

    def test_str(self):
        info = PlatformIdentity(OSKind.LINUX, 'x86_64', DistributionIdentity('ubuntu', '16.04'))
        assert str(info) == 'linux, x86_64, name=ubuntu, version=16.04'

    def test_str_without_architecture(self):
        assert str(PlatformIdentity(OSKind.MACOS, None)) == 'macos'

    def test_to_dict(self):
        info = PlatformIdentity(OSKind.LINUX, 'x86_64', DistributionIdentity('ubuntu', '16.04'),
                                'ubuntu.16.04-x64')
        assert info.to_dict() == {
            'os_kind': 'linux',
            'architecture': 'x86_64',
            'distribution': {'name': 'ubuntu', 'version': '16.04', 'id_like': None},
            'runtime_id': 'ubuntu.16.04-x64',
        }

    def test_value_equality(self):
        a = PlatformIdentity(OSKind.WINDOWS, 'x86', None, 'win7-x86')
        b = PlatformIdentity(OSKind.WINDOWS, 'x86', None, 'win7-x86')
        assert a == b


class TestDetectCurrentPlatform:
    """Module-level entry point"""

    @patch('ridprobe.platform.detector.sys')
    def test_unsupported_host(self, mock_sys):
        mock_sys.platform = 'sunos5'
        with pytest.raises(UnsupportedPlatformError):
            detect_current_platform()

    def test_config_supplies_release_files_and_fallback(self, release_file):
        path = release_file('ID=mystery\r\nVERSION_ID=1\r\n')
        config = RidprobeConfig(
            fallback_runtime_id='custom-x64',
            release_files=[str(path)],
            line_separator_name='crlf',
        )
        with patch('ridprobe.platform.detector.sys') as mock_sys, \
                patch('ridprobe.platform.detector.run_architecture_command', return_value='x86_64\n'):
            mock_sys.platform = 'linux'
            info = detect_current_platform(config=config)

        assert info.distribution.name == 'mystery'
        assert info.distribution.version == '1'
        assert info.runtime_id == 'custom-x64'

    def test_explicit_fallback_beats_config(self, release_file):
        path = release_file('ID=mystery\n')
        config = RidprobeConfig(fallback_runtime_id='from-config', release_files=[str(path)],
                                line_separator_name='lf')
        with patch('ridprobe.platform.detector.sys') as mock_sys, \
                patch('ridprobe.platform.detector.run_architecture_command', return_value='x86_64'):
            mock_sys.platform = 'linux'
            info = detect_current_platform(StaticRuntimeIdFallback('explicit'), config=config)

        assert info.runtime_id == 'explicit'
