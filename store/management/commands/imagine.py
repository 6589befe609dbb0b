import json

from django.core.management.base import BaseCommand, CommandError

from store import imagine


class Command(BaseCommand):
    help = "Submit a wallpaper prompt to the Imagine API and wait for the images."

    def add_arguments(self, parser):
        parser.add_argument('prompt')
        parser.add_argument('--style')
        parser.add_argument('--color', action='append', dest='colors', default=[])
        parser.add_argument('--interval', type=float, help="Seconds between status checks")
        parser.add_argument('--timeout', type=float, help="Give up after this many seconds")

    def handle(self, *args, **options):
        prompt = imagine.build_prompt(options['prompt'], options['style'], options['colors'])
        try:
            request_id = imagine.submit_prompt(prompt)
            self.stdout.write(f"Submitted request {request_id}, waiting for images...")
            results = imagine.wait_for_images(
                request_id,
                interval=options['interval'],
                timeout=options['timeout'],
            )
        except imagine.ImagineError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(json.dumps(results, indent=2)))
