"""
Unit tests for the worker and master command lines
"""

import os
import sys

import pytest

from ssh_wordcount.coordinator import server as master
from ssh_wordcount.worker import server as worker


@pytest.fixture(autouse=True)
def worker_settings(monkeypatch):
    for name in list(os.environ):
        if name.startswith("WORDCOUNT_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("WORDCOUNT_MAP_THREADS", "2")


class TestWorkerCommandLine:
    """Tests for SXUMX and UMXRMX dispatch"""

    def test_map_mode(self, sample_input_file, temp_dir, capsys):
        output = os.path.join(temp_dir, 'UM_w.txt')

        assert worker.main(["SXUMX", output, sample_input_file]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[-1] == "END OF PROCESS SXUMX"
        assert "quick" in lines
        assert os.path.getsize(output) > 0

    def test_map_mode_with_stop_words_file(self, temp_dir, monkeypatch, capsys):
        input_path = os.path.join(temp_dir, 'in.txt')
        with open(input_path, 'w') as f:
            f.write("the quick fox")
        stop_words = os.path.join(temp_dir, 'stop.txt')
        with open(stop_words, 'w') as f:
            f.write("the\n")
        monkeypatch.setenv("WORDCOUNT_STOP_WORDS_FILE", stop_words)

        assert worker.main(["SXUMX", os.path.join(temp_dir, 'um.txt'), input_path]) == 0

        assert "the" not in capsys.readouterr().out.splitlines()

    def test_reduce_mode(self, temp_dir, capsys):
        shard = os.path.join(temp_dir, 'UM_w.txt')
        with open(shard, 'w') as f:
            f.write("aa 1\nbb 1\naa 1\n")
        keys = os.path.join(temp_dir, 'Keys_w.txt')
        with open(keys, 'w') as f:
            f.write("aa\nbb\n")
        output = os.path.join(temp_dir, 'RM_w.txt')

        assert worker.main(["UMXRMX", output, shard + "___", keys]) == 0

        assert capsys.readouterr().out.splitlines() == ["aa 2", "bb 1", "END OF PROCESS UMXRMX"]

    def test_missing_input_exits_without_sentinel(self, temp_dir, capsys):
        code = worker.main(["SXUMX", os.path.join(temp_dir, 'um.txt'),
                            os.path.join(temp_dir, 'missing.txt')])

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_failed_counter_exits_with_error_after_sentinel(self, temp_dir, capsys):
        keys = os.path.join(temp_dir, 'Keys_w.txt')
        with open(keys, 'w') as f:
            f.write("aa\n")

        code = worker.main(["UMXRMX", os.path.join(temp_dir, 'RM_w.txt'),
                            os.path.join(temp_dir, 'missing.txt'), keys])

        assert code == 1
        assert capsys.readouterr().out.splitlines() == ["aa 0", "END OF PROCESS UMXRMX"]

    @pytest.mark.parametrize("argv", [
        [],
        ["MAP", "out", "in"],
        ["SXUMX", "out"],
        ["SXUMX", "out", "in", "extra"],
        ["UMXRMX", "out", "in___"],
    ])
    def test_bad_arguments_exit_with_status_1(self, argv):
        with pytest.raises(SystemExit) as exc:
            worker.main(argv)
        assert exc.value.code == 1

    def test_bad_configuration(self, monkeypatch, temp_dir):
        monkeypatch.setenv("WORDCOUNT_MAP_THREADS", "none")
        assert worker.main(["SXUMX", "out", "in"]) == 1


class TestMasterCommandLine:
    """Tests for argument and startup failures of the master"""

    @pytest.mark.parametrize("argv", [
        [],
        ["input.txt", "addresses.txt"],
        ["input.txt", "addresses.txt", "1000", "extra"],
        ["input.txt", "addresses.txt", "soon"],
        ["input.txt", "addresses.txt", "-5"],
    ])
    def test_bad_arguments_exit_with_status_1(self, argv):
        with pytest.raises(SystemExit) as exc:
            master.main(argv)
        assert exc.value.code == 1

    def test_missing_input(self, temp_dir, monkeypatch):
        monkeypatch.setenv("WORDCOUNT_WORK_DIR", temp_dir)
        addresses = os.path.join(temp_dir, 'addresses.txt')
        with open(addresses, 'w') as f:
            f.write("localhost\n")

        assert master.main([os.path.join(temp_dir, 'missing.txt'), addresses, "100"]) == 1

    def test_no_live_worker(self, sample_input_file, temp_dir, monkeypatch):
        monkeypatch.setenv("WORDCOUNT_TRANSPORT", "local")
        monkeypatch.setenv("WORDCOUNT_WORK_DIR", temp_dir)
        monkeypatch.setenv("WORDCOUNT_PROBE_COMMAND", f'"{sys.executable}" -c pass')
        addresses = os.path.join(temp_dir, 'addresses.txt')
        with open(addresses, 'w') as f:
            f.write("w1\nw2\n")

        assert master.main([sample_input_file, addresses, "300"]) == 1
        assert not os.path.exists(os.path.join(temp_dir, 'wordcount.txt'))
