"""
Integration tests for the Flask API and the command line interface.
"""
import io
import json
import sys

import pytest

import analyze_profile
from app import app
from profile_analyzer import ProfileAnalyzer


@pytest.fixture
def client():
    """Flask test client."""
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client


def upload(client, content, filename='profile.json', **form):
    data = dict(form)
    data['file'] = (io.BytesIO(content), filename)
    return client.post('/api/analyze', data=data, content_type='multipart/form-data')


class TestApi:
    """Tests for the REST API."""

    def test_health(self, client):
        """Test the health endpoint reports the version."""
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'

    def test_analyze_speedscope(self, client, two_thread_evented_document):
        """Test analyzing an uploaded speedscope export."""
        response = upload(client, json.dumps(two_thread_evented_document).encode())

        assert response.status_code == 200
        payload = response.get_json()
        assert payload['profile_type'] == 'cpu'
        assert payload['call_tree']['children'][0]['name'] == "A"

    def test_analyze_trace_kind(self, client):
        """Test analyzing an uploaded trace event dump with config fields."""
        events = {"events": [
            {"provider": "Microsoft-Windows-DotNETRuntime", "name": "Contention/Start",
             "timestamp_ms": 0, "stack": ["Main"]},
            {"provider": "Microsoft-Windows-DotNETRuntime", "name": "Contention/Stop", "timestamp_ms": 4},
        ]}
        response = upload(client, json.dumps(events).encode(), kind='contention', max_width='2')

        assert response.status_code == 200
        assert response.get_json()['summary']['total_count'] == 1

    def test_no_file(self, client):
        """Test a request without a file is rejected."""
        response = client.post('/api/analyze', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_wrong_extension(self, client):
        """Test non-JSON uploads are rejected."""
        response = upload(client, b'{}', filename='profile.txt')
        assert response.status_code == 400

    def test_invalid_kind(self, client):
        """Test unknown profile kinds are rejected."""
        response = upload(client, b'{}', kind='gc')
        assert response.status_code == 400

    def test_invalid_config(self, client):
        """Test out-of-range config values are rejected."""
        response = upload(client, b'{}', max_width='0')
        assert response.status_code == 400
        assert 'Invalid configuration' in response.get_json()['error']

    def test_no_usable_data(self, client):
        """Test a document without profiles is unprocessable."""
        response = upload(client, b'{"shared": {"frames": []}}')
        assert response.status_code == 422

    def test_empty_trace(self, client):
        """Test a trace without CPU samples is unprocessable."""
        response = upload(client, b'{"events": []}', kind='cpu')
        assert response.status_code == 422
        assert response.get_json()['error'] == "No CPU samples found in trace."

    def test_broken_json(self, client):
        """Test an undecodable upload is a server-side analysis error."""
        response = upload(client, b'{"events": [', kind='exception')
        assert response.status_code == 500


    def test_unexpected_error_is_json(self, client, monkeypatch, two_thread_evented_document):
        """Test unexpected analysis failures still answer with a JSON error."""
        def fail(self, source, kind):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(ProfileAnalyzer, 'analyze', fail)
        response = upload(client, json.dumps(two_thread_evented_document).encode())

        assert response.status_code == 500
        assert response.get_json() == {'error': "disk on fire"}

    def test_invalid_stack_is_analysis_error(self, client):
        """Test an event dump with malformed stacks is reported as a JSON 500."""
        events = {"events": [{"provider": "Microsoft-DotNETCore-SampleProfiler", "name": "Thread/Sample",
                              "timestamp_ms": 0, "stack": [12, 34]}]}
        response = upload(client, json.dumps(events).encode(), kind='cpu')

        assert response.status_code == 500
        assert 'CPU trace parse failed' in response.get_json()['error']


class TestCli:
    """Tests for the command line interface."""

    def test_writes_output(self, monkeypatch, speedscope_file, tmp_path):
        """Test the CLI writes the prepared results."""
        output = tmp_path / "out.json"
        monkeypatch.setattr(sys, 'argv', ['analyze_profile.py', speedscope_file, '-o', str(output)])

        analyze_profile.main()

        with open(output) as f:
            assert json.load(f)['profile_type'] == 'cpu'

    def test_missing_file_exits(self, monkeypatch, tmp_path):
        """Test a missing input exits with status 1."""
        monkeypatch.setattr(sys, 'argv', ['analyze_profile.py', str(tmp_path / "missing.json")])

        with pytest.raises(SystemExit) as exc_info:
            analyze_profile.main()
        assert exc_info.value.code == 1

    def test_invalid_config_exits(self, monkeypatch, speedscope_file):
        """Test invalid options exit with status 2."""
        monkeypatch.setattr(sys, 'argv', ['analyze_profile.py', speedscope_file, '--max-width', '0'])

        with pytest.raises(SystemExit) as exc_info:
            analyze_profile.main()
        assert exc_info.value.code == 2
