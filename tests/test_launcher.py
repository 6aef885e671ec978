import os, subprocess, sys
import pytest
from pathlib import Path
from codex_cli.lib.launcher import (
    LaunchRequest, Exited, Signaled, launch, format_command_line, signal_name, effective_env
)

def py(code: str, *args: str, **kw) -> LaunchRequest:
    return LaunchRequest(sys.executable, ('-c', code, *args), **kw)

def test_dry_run_reports_without_spawning(monkeypatch, capsys):
    def boom(*a, **kw):
        raise AssertionError('dry run must not spawn')
    monkeypatch.setattr(subprocess, 'Popen', boom)
    result = launch(LaunchRequest('echo', ('hi',), env={'FOO': 'bar'}, dry_run=True))
    assert result == Exited(0)
    assert capsys.readouterr().out == 'Would run: echo hi\n  with env: FOO=bar\n'

def test_dry_run_reports_cwd_without_creating_it(tmp_path: Path, capsys):
    target = tmp_path / 'missing'
    result = launch(LaunchRequest('make', ('all',), cwd=str(target), dry_run=True))
    assert result.exit_code == 0 and result.signal is None
    out = capsys.readouterr().out
    assert f'  in {target}\n' in out
    assert 'with env' not in out
    assert not target.exists()

def test_exit_code_is_reported():
    assert launch(py('import sys; sys.exit(3)')) == Exited(3)
    assert launch(py('pass')) == Exited(0)

def test_env_overlay_wins_over_inherited(monkeypatch):
    monkeypatch.setenv('CODEX_INHERITED', 'yes')
    monkeypatch.setenv('CODEX_OVERLAY', 'old')
    code = (
        'import os, sys; '
        "sys.exit(0 if os.environ.get('CODEX_INHERITED') == 'yes' and os.environ.get('CODEX_OVERLAY') == 'new' else 1)"
    )
    assert launch(py(code, env={'CODEX_OVERLAY': 'new'})) == Exited(0)

def test_cwd_is_used(tmp_path: Path):
    code = 'import os, sys; sys.exit(0 if os.path.realpath(os.getcwd()) == os.path.realpath(sys.argv[1]) else 1)'
    assert launch(py(code, str(tmp_path), cwd=str(tmp_path))) == Exited(0)

@pytest.mark.skipif(sys.platform == 'win32', reason='POSIX signals')
def test_signal_is_reported():
    result = launch(py('import os, signal; os.kill(os.getpid(), signal.SIGTERM)'))
    assert result == Signaled('SIGTERM')
    assert result.exit_code is None
    assert result.signal == 'SIGTERM'

def test_missing_executable_is_normalised(capsys):
    result = launch(LaunchRequest('codex-no-such-binary-for-tests'))
    assert result == Exited(1)
    assert 'codex-no-such-binary-for-tests' in capsys.readouterr().err

def test_bad_cwd_is_normalised(tmp_path: Path, capsys):
    result = launch(py('pass', cwd=str(tmp_path / 'nope')))
    assert result == Exited(1)
    assert 'Error:' in capsys.readouterr().err

def test_request_copies_inputs():
    env = {'A': '1'}
    args = ['x']
    req = LaunchRequest('cmd', args, env=env)
    env['A'] = '2'; args.append('y')
    assert req.env == {'A': '1'}
    assert req.argv == ['cmd', 'x']

def test_format_command_line_quotes():
    assert format_command_line('echo', ['hi']) == 'echo hi'
    assert format_command_line('echo', ['hello world']) == "echo 'hello world'"

def test_signal_name_unknown():
    assert signal_name(2) == 'SIGINT'
    assert signal_name(999) == 'SIG999'

def test_effective_env_overlay(monkeypatch):
    monkeypatch.setenv('CODEX_X', 'inherited')
    env = effective_env({'CODEX_X': 'mine'})
    assert env['CODEX_X'] == 'mine'
    assert os.environ['CODEX_X'] == 'inherited'
