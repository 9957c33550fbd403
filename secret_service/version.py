"""Secret Service Meta information.
   Secret Service is an asyncio client for the FreeDesktop Secret Service API.
"""
__title__ = 'secret_service'
__description__ = (
   'Asyncio client for the FreeDesktop Secret Service API, '
   'with Diffie-Hellman negotiated transport encryption.'
)
__version__ = '0.4.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/secret-service'
