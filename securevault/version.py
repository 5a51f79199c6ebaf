"""SecureVault Meta information.
   SecureVault keeps platform credentials encrypted under a master password
   and shares the unlocked state with cooperating contexts for autofill.
"""
__title__ = 'securevault'
__description__ = (
   'Local-only credential vault with encrypted envelopes '
   'and cross-context autofill synchronization.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 SecureVault Authors'
__author__ = 'SecureVault Authors'
__license__ = 'Apache-2.0'
