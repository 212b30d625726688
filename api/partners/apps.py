from django.apps import AppConfig


class PartnersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'partners'
    verbose_name = 'Partners'

    def ready(self):
        from .dispatcher import InvitationDispatcher
        from .models import PARTNER_MODELS
        from .registry import PartnerRegistry
        from .state_machine import ApprovalStateMachine

        self.dispatcher = InvitationDispatcher()
        self.state_machine = ApprovalStateMachine()
        self.registries = {
            kind: PartnerRegistry(model, self.dispatcher, self.state_machine)
            for kind, model in PARTNER_MODELS.items()
        }
