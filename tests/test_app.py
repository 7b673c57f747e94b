# Test cases for app module

def test_health_check(client):
    """Test the health check endpoint."""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json['status'] == 'healthy'


def test_unknown_route_is_json(client):
    response = client.get('/api/nope')
    assert response.status_code == 404
    assert 'error' in response.json


def test_api_requires_login(client):
    response = client.post('/api/quizzes/quiz-1/sessions')
    assert response.status_code == 401
    assert response.json['error'] == 'Authentication required'
