# store/identity.py
"""
Cognito user-pool directory: admin user management and profile attributes.
"""
import logging

import boto3
from django.conf import settings

logger = logging.getLogger(__name__)

ROLES = ('admin', 'user')
DEFAULT_LIMIT = 60
DEVICE_STATUSES = ('remembered', 'not_remembered')

# Profile field name -> Cognito attribute name
ATTRIBUTE_MAPPING = {
    'firstName': 'given_name',
    'lastName': 'family_name',
    'phone': 'phone_number',
    'address': 'address',
    'timezone': 'zoneinfo',
    'profilePicture': 'picture',
}
REVERSE_ATTRIBUTE_MAPPING = {v: k for k, v in ATTRIBUTE_MAPPING.items()}


def _client():
    return boto3.client('cognito-idp', region_name=settings.COGNITO_REGION)


def _pool_id():
    return settings.COGNITO_USER_POOL_ID


def _attributes(raw):
    return {attr['Name']: attr['Value'] for attr in raw or [] if attr.get('Name') and attr.get('Value')}


def _format_user(username, raw_attributes, status, created):
    attributes = _attributes(raw_attributes)
    name = f"{attributes.get('given_name', '')} {attributes.get('family_name', '')}".strip()
    return {
        'username': username or '',
        'userId': username or '',
        'email': attributes.get('email', ''),
        'name': name,
        'status': status or 'UNKNOWN',
        'createdAt': created.isoformat() if created else '',
        'attributes': attributes,
    }


# -------------------------------
# Directory (admin)
# -------------------------------
def list_users(limit=DEFAULT_LIMIT, pagination_token=None):
    params = {'UserPoolId': _pool_id(), 'Limit': limit}
    if pagination_token:
        params['PaginationToken'] = pagination_token
    response = _client().list_users(**params)
    users = [
        _format_user(u.get('Username'), u.get('Attributes'), u.get('UserStatus'), u.get('UserCreateDate'))
        for u in response.get('Users', [])
    ]
    return {'users': users, 'paginationToken': response.get('PaginationToken')}


def get_user(username):
    response = _client().admin_get_user(UserPoolId=_pool_id(), Username=username)
    return _format_user(
        username,
        response.get('UserAttributes'),
        response.get('UserStatus'),
        response.get('UserCreateDate'),
    )


def update_user_attributes(username, attributes):
    _client().admin_update_user_attributes(
        UserPoolId=_pool_id(),
        Username=username,
        UserAttributes=[{'Name': k, 'Value': str(v)} for k, v in attributes.items()],
    )
    return {'success': True}


def update_user_role(username, role):
    if role not in ROLES:
        raise ValueError(f"Invalid role: {role}")
    return update_user_attributes(username, {'custom:role': role})


def reset_user_password(username):
    _client().admin_reset_user_password(UserPoolId=_pool_id(), Username=username)
    logger.info("Password reset requested for %s", username)
    return {'success': True}


def add_user_to_group(username, group_name):
    _client().admin_add_user_to_group(UserPoolId=_pool_id(), Username=username, GroupName=group_name)
    logger.info("Added %s to group %s", username, group_name)
    return {'success': True}


def remove_user_from_group(username, group_name):
    _client().admin_remove_user_from_group(UserPoolId=_pool_id(), Username=username, GroupName=group_name)
    logger.info("Removed %s from group %s", username, group_name)
    return {'success': True}


def list_users_in_group(group_name, limit=DEFAULT_LIMIT, pagination_token=None):
    params = {'UserPoolId': _pool_id(), 'GroupName': group_name, 'Limit': limit}
    if pagination_token:
        params['NextToken'] = pagination_token
    response = _client().list_users_in_group(**params)
    users = [
        _format_user(u.get('Username'), u.get('Attributes'), u.get('UserStatus'), u.get('UserCreateDate'))
        for u in response.get('Users', [])
    ]
    return {'users': users, 'paginationToken': response.get('NextToken')}


# -------------------------------
# Remembered devices (admin)
# -------------------------------
def _format_device(device):
    attributes = _attributes(device.get('DeviceAttributes'))
    modified = device.get('DeviceLastModifiedDate')
    authenticated = device.get('DeviceLastAuthenticatedDate')
    return {
        'deviceKey': device.get('DeviceKey', ''),
        'deviceName': attributes.get('device_name', ''),
        'deviceStatus': attributes.get('dev:device_remembered_status', ''),
        'lastModifiedDate': modified.isoformat() if modified else '',
        'lastAuthenticatedDate': authenticated.isoformat() if authenticated else '',
        'attributes': attributes,
    }


def list_devices(username, limit=DEFAULT_LIMIT, pagination_token=None):
    params = {'UserPoolId': _pool_id(), 'Username': username, 'Limit': limit}
    if pagination_token:
        params['PaginationToken'] = pagination_token
    response = _client().admin_list_devices(**params)
    return {
        'devices': [_format_device(d) for d in response.get('Devices', [])],
        'paginationToken': response.get('PaginationToken'),
    }


def get_device(username, device_key):
    response = _client().admin_get_device(UserPoolId=_pool_id(), Username=username, DeviceKey=device_key)
    return _format_device(response.get('Device') or {})


def forget_device(username, device_key):
    _client().admin_forget_device(UserPoolId=_pool_id(), Username=username, DeviceKey=device_key)
    logger.info("Forgot device %s for %s", device_key, username)
    return {'success': True, 'username': username, 'deviceKey': device_key}


def update_device_status(username, device_key, remembered_status):
    if remembered_status not in DEVICE_STATUSES:
        raise ValueError(f"Invalid device status: {remembered_status}")
    _client().admin_update_device_status(
        UserPoolId=_pool_id(),
        Username=username,
        DeviceKey=device_key,
        DeviceRememberedStatus=remembered_status,
    )
    return {'success': True, 'username': username, 'deviceKey': device_key}


# -------------------------------
# Profile (signed-in user)
# -------------------------------
def to_profile(attributes):
    profile = {}
    for key, value in attributes.items():
        if key == 'email':
            profile['email'] = value
        elif key in REVERSE_ATTRIBUTE_MAPPING:
            profile[REVERSE_ATTRIBUTE_MAPPING[key]] = value
    return profile


def to_attributes(data):
    """
    Only known profile fields with a value are sent to Cognito.
    """
    return {
        ATTRIBUTE_MAPPING[key]: str(value)
        for key, value in data.items()
        if key in ATTRIBUTE_MAPPING and value is not None
    }


def get_profile(username):
    return to_profile(get_user(username)['attributes'])


def update_profile(username, data):
    attributes = to_attributes(data)
    if attributes:
        update_user_attributes(username, attributes)
    return get_profile(username)
