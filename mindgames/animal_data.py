"""Static reference data for Animal Kingdom.

Everything here is read-only: categories, habitats and the animal table the
question generator draws from. Optional flags are None when the attribute is
not a clear yes/no for the species; the generator only asks about, or
contradicts, attributes that are known.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AnimalCategory(StrEnum):
    MAMMALS = "mammals"
    BIRDS = "birds"
    OCEAN_LIFE = "ocean-life"
    REPTILES_AMPHIBIANS = "reptiles-amphibians"


class Diet(StrEnum):
    HERBIVORE = "herbivore"
    CARNIVORE = "carnivore"
    OMNIVORE = "omnivore"


@dataclass(frozen=True, slots=True)
class CategoryConfig:
    id: AnimalCategory
    name: str
    description: str
    icon: str


@dataclass(frozen=True, slots=True)
class Habitat:
    id: str
    name: str
    description: str


@dataclass(frozen=True, slots=True)
class Animal:
    id: str
    name: str
    category: AnimalCategory
    habitat: str
    emoji: str
    scientific_name: str
    diet: Diet
    lifespan: str
    size: str
    fun_facts: tuple[str, ...]
    description: str
    can_fly: bool | None = None
    is_nocturnal: bool | None = None
    is_endangered: bool | None = None


CATEGORIES: tuple[CategoryConfig, ...] = (
    CategoryConfig(AnimalCategory.MAMMALS, "Mammals", "Warm-blooded creatures that nurse their young", "🦁"),
    CategoryConfig(AnimalCategory.BIRDS, "Birds", "Feathered friends that rule the skies", "🦅"),
    CategoryConfig(AnimalCategory.OCEAN_LIFE, "Ocean Life", "Mysterious creatures of the deep sea", "🐋"),
    CategoryConfig(
        AnimalCategory.REPTILES_AMPHIBIANS,
        "Reptiles & Amphibians",
        "Cold-blooded crawlers and hoppers",
        "🦎",
    ),
)

HABITATS: tuple[Habitat, ...] = (
    Habitat("forest", "Forest", "Wooded areas with diverse wildlife."),
    Habitat("savanna", "Savanna", "Tropical grasslands dotted with trees."),
    Habitat("ocean", "Ocean", "Vast seas and coral reefs."),
    Habitat("desert", "Desert", "Hot and dry sandy regions."),
    Habitat("arctic", "Arctic", "Frozen polar regions."),
    Habitat("rainforest", "Rainforest", "Tropical jungles with high rainfall."),
    Habitat("wetlands", "Wetlands", "Swamps, marshes and bogs."),
    Habitat("mountains", "Mountains", "High altitude rocky terrain."),
    Habitat("grasslands", "Grasslands", "Open prairies and meadows."),
)

HABITATS_BY_ID: dict[str, Habitat] = {h.id: h for h in HABITATS}

# A habitat no animal from the key habitat could be said to live in.
CONTRADICTING_HABITAT: dict[str, str] = {
    "forest": "ocean",
    "savanna": "arctic",
    "ocean": "desert",
    "desert": "arctic",
    "arctic": "desert",
    "rainforest": "arctic",
    "wetlands": "desert",
    "mountains": "ocean",
    "grasslands": "ocean",
}


_M = AnimalCategory.MAMMALS
_B = AnimalCategory.BIRDS
_O = AnimalCategory.OCEAN_LIFE
_R = AnimalCategory.REPTILES_AMPHIBIANS

ANIMALS: tuple[Animal, ...] = (
    # Mammals
    Animal(
        "lion", "Lion", _M, "savanna", "🦁", "Panthera leo", Diet.CARNIVORE, "10-14 years", "1.2 m tall",
        ("Lions live in family groups called prides.", "A lion's roar can be heard up to 8 kilometres away."),
        "A big cat with a shaggy mane that lives in family groups.",
        is_endangered=False,
    ),
    Animal(
        "african-elephant", "African Elephant", _M, "savanna", "🐘", "Loxodonta africana", Diet.HERBIVORE,
        "60-70 years", "3-4 m tall",
        ("African elephants are the largest land animals on Earth.",
         "Elephants use their trunks to drink, smell and pick things up."),
        "A giant grey animal with huge ears and a long trunk.",
        is_endangered=True,
    ),
    Animal(
        "giraffe", "Giraffe", _M, "savanna", "🦒", "Giraffa camelopardalis", Diet.HERBIVORE, "about 25 years",
        "up to 5.5 m tall",
        ("Giraffes are the tallest animals on Earth.", "A giraffe's tongue can be about 50 centimetres long."),
        "A very tall animal with a long neck and a spotted coat.",
        is_nocturnal=False,
    ),
    Animal(
        "polar-bear", "Polar Bear", _M, "arctic", "🐻‍❄️", "Ursus maritimus", Diet.CARNIVORE, "20-25 years",
        "up to 3 m long",
        ("Polar bears have black skin under their white fur.", "Polar bears are strong swimmers."),
        "A large white bear that hunts seals on the sea ice.",
    ),
    Animal(
        "red-fox", "Red Fox", _M, "forest", "🦊", "Vulpes vulpes", Diet.OMNIVORE, "3-6 years", "about 1 m long",
        ("Red foxes wrap their bushy tails around themselves to keep warm.",
         "Red foxes have excellent hearing."),
        "A clever orange-red animal with a bushy white-tipped tail.",
        is_endangered=False,
    ),
    Animal(
        "little-brown-bat", "Little Brown Bat", _M, "forest", "🦇", "Myotis lucifugus", Diet.CARNIVORE,
        "6-7 years", "about 9 cm long",
        ("Bats are the only mammals that can truly fly.",
         "Little brown bats find insects in the dark using echolocation."),
        "A small furry flyer that hunts insects at night.",
        can_fly=True,
        is_nocturnal=True,
    ),
    Animal(
        "orangutan", "Orangutan", _M, "rainforest", "🦧", "Pongo pygmaeus", Diet.OMNIVORE, "35-45 years",
        "about 1.4 m tall",
        ("Orangutans spend most of their lives in the trees.",
         "Orangutans build a fresh sleeping nest in the trees almost every night."),
        "A red-haired great ape with very long arms.",
        is_nocturnal=False,
        is_endangered=True,
    ),
    Animal(
        "dromedary-camel", "Dromedary Camel", _M, "desert", "🐪", "Camelus dromedarius", Diet.HERBIVORE,
        "40-50 years", "about 2 m tall",
        ("A camel's hump stores fat, not water.", "Camels can close their nostrils to keep out blowing sand."),
        "A one-humped animal built for long trips across the sand.",
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "snow-leopard", "Snow Leopard", _M, "mountains", "🐆", "Panthera uncia", Diet.CARNIVORE, "15-18 years",
        "about 1.2 m long",
        ("Snow leopards use their long thick tails for balance and warmth.",
         "Snow leopards have wide furry paws that work like snowshoes."),
        "A grey spotted cat that lives high in cold rocky ranges.",
    ),
    # Birds
    Animal(
        "bald-eagle", "Bald Eagle", _B, "forest", "🦅", "Haliaeetus leucocephalus", Diet.CARNIVORE,
        "20-30 years", "about 2 m wingspan",
        ("Bald eagles build some of the largest nests of any bird.",
         "The bald eagle is the national bird of the United States."),
        "A large bird of prey with a white head and a hooked yellow beak.",
        can_fly=True,
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "ostrich", "Ostrich", _B, "savanna", "🐦", "Struthio camelus", Diet.OMNIVORE, "30-40 years",
        "up to 2.7 m tall",
        ("Ostriches are the largest birds in the world.", "Ostriches can run faster than 60 kilometres per hour."),
        "A huge long-legged bird that runs instead of flying.",
        can_fly=False,
        is_endangered=False,
    ),
    Animal(
        "kiwi", "Kiwi", _B, "forest", "🥝", "Apteryx mantelli", Diet.OMNIVORE, "25-50 years", "about 40 cm tall",
        ("Kiwis have nostrils at the tip of their long beaks.", "The kiwi is a national symbol of New Zealand."),
        "A small round brown bird that sniffs for worms at night.",
        can_fly=False,
        is_nocturnal=True,
    ),
    Animal(
        "great-horned-owl", "Great Horned Owl", _B, "forest", "🦉", "Bubo virginianus", Diet.CARNIVORE,
        "about 13 years", "about 55 cm tall",
        ("Owls can turn their heads about 270 degrees.", "Great horned owls fly almost silently."),
        "A large owl with feathery ear tufts and big yellow eyes.",
        can_fly=True,
        is_nocturnal=True,
        is_endangered=False,
    ),
    Animal(
        "hummingbird", "Ruby-throated Hummingbird", _B, "forest", "🐦", "Archilochus colubris", Diet.OMNIVORE,
        "3-5 years", "about 8 cm long",
        ("Hummingbirds can fly backwards.", "Hummingbirds hover in place while they drink nectar from flowers."),
        "A tiny bird whose wings beat so fast they hum.",
        can_fly=True,
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "flamingo", "American Flamingo", _B, "wetlands", "🦩", "Phoenicopterus ruber", Diet.OMNIVORE,
        "20-30 years", "about 1.3 m tall",
        ("Flamingos get their pink colour from the food they eat.", "Flamingos often rest standing on one leg."),
        "A pink wading bird with long legs and a bent beak.",
        can_fly=True,
        is_endangered=False,
    ),
    Animal(
        "scarlet-macaw", "Scarlet Macaw", _B, "rainforest", "🦜", "Ara macao", Diet.HERBIVORE, "40-50 years",
        "about 85 cm long",
        ("Scarlet macaws crack hard nuts with their strong curved beaks.",
         "Scarlet macaws often gather in large noisy flocks."),
        "A bright red, yellow and blue parrot with a long tail.",
        can_fly=True,
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "snowy-owl", "Snowy Owl", _B, "arctic", "🦉", "Bubo scandiacus", Diet.CARNIVORE, "about 10 years",
        "about 60 cm tall",
        ("Snowy owls have feathers on their feet to keep them warm.",
         "Snowy owls hunt lemmings and other small animals."),
        "A white owl that lives on the cold open tundra.",
        can_fly=True,
    ),
    Animal(
        "roadrunner", "Greater Roadrunner", _B, "desert", "🐦", "Geococcyx californianus", Diet.OMNIVORE,
        "7-8 years", "about 55 cm long",
        ("Roadrunners prefer running to flying.", "Roadrunners can catch and eat rattlesnakes."),
        "A speedy ground bird with a long tail and a shaggy crest.",
        can_fly=True,
        is_nocturnal=False,
        is_endangered=False,
    ),
    # Ocean life
    Animal(
        "blue-whale", "Blue Whale", _O, "ocean", "🐋", "Balaenoptera musculus", Diet.CARNIVORE, "80-90 years",
        "up to 30 m long",
        ("Blue whales are the largest animals known to have ever lived.",
         "Blue whales feed almost entirely on tiny shrimp-like krill."),
        "An enormous blue-grey whale that filters krill from the water.",
        is_endangered=True,
    ),
    Animal(
        "bottlenose-dolphin", "Bottlenose Dolphin", _O, "ocean", "🐬", "Tursiops truncatus", Diet.CARNIVORE,
        "40-50 years", "2-4 m long",
        ("Dolphins use echolocation to find food.", "Dolphins breathe air through a blowhole on top of their heads."),
        "A smart, playful swimmer with a curved fin and a smiling face.",
        is_endangered=False,
    ),
    Animal(
        "great-white-shark", "Great White Shark", _O, "ocean", "🦈", "Carcharodon carcharias", Diet.CARNIVORE,
        "about 70 years", "4-6 m long",
        ("Sharks have skeletons made of cartilage, not bone.", "Sharks keep growing new teeth all their lives."),
        "A powerful grey hunter with rows of sharp teeth.",
    ),
    Animal(
        "octopus", "Common Octopus", _O, "ocean", "🐙", "Octopus vulgaris", Diet.CARNIVORE, "1-2 years",
        "about 1 m across",
        ("Octopuses have three hearts.", "Octopuses can change colour to blend in with their surroundings."),
        "A soft-bodied sea creature with eight flexible arms.",
    ),
    Animal(
        "green-sea-turtle", "Green Sea Turtle", _O, "ocean", "🐢", "Chelonia mydas", Diet.HERBIVORE,
        "60-70 years", "about 1.2 m long",
        ("Adult green sea turtles mostly eat seagrass and algae.",
         "Female green sea turtles come ashore to lay their eggs on sandy beaches."),
        "A large sea turtle with a smooth shell and flipper-like legs.",
        is_endangered=True,
    ),
    Animal(
        "clownfish", "Clownfish", _O, "ocean", "🐠", "Amphiprion ocellaris", Diet.OMNIVORE, "6-10 years",
        "about 10 cm long",
        ("Clownfish live among the stinging tentacles of sea anemones.",
         "A slimy coating protects clownfish from anemone stings."),
        "A small orange fish with white stripes.",
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "sea-otter", "Sea Otter", _O, "ocean", "🦦", "Enhydra lutris", Diet.CARNIVORE, "15-20 years",
        "about 1.2 m long",
        ("Sea otters have the thickest fur of any animal.", "Sea otters use rocks as tools to crack open shellfish."),
        "A furry sea mammal that floats on its back while eating.",
        is_nocturnal=False,
        is_endangered=True,
    ),
    Animal(
        "walrus", "Walrus", _O, "arctic", "🦭", "Odobenus rosmarus", Diet.CARNIVORE, "about 40 years",
        "about 3 m long",
        ("Both male and female walruses have tusks.", "Walruses use their tusks to haul themselves onto the ice."),
        "A huge whiskered sea mammal with two long tusks.",
    ),
    # Reptiles and amphibians
    Animal(
        "komodo-dragon", "Komodo Dragon", _R, "savanna", "🦎", "Varanus komodoensis", Diet.CARNIVORE,
        "about 30 years", "up to 3 m long",
        ("Komodo dragons are the largest lizards in the world.", "Komodo dragons use their forked tongues to smell."),
        "A giant lizard with a long tail and a forked yellow tongue.",
        is_nocturnal=False,
        is_endangered=True,
    ),
    Animal(
        "green-iguana", "Green Iguana", _R, "rainforest", "🦎", "Iguana iguana", Diet.HERBIVORE, "about 20 years",
        "up to 1.7 m long",
        ("Green iguanas are good swimmers.", "Green iguanas can drop their tails to escape predators."),
        "A large green lizard with spines running down its back.",
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "american-alligator", "American Alligator", _R, "wetlands", "🐊", "Alligator mississippiensis",
        Diet.CARNIVORE, "35-50 years", "3-4.5 m long",
        ("An alligator's eyes and nostrils sit on top of its head so it can hide underwater.",
         "Alligators lay their eggs in nests made of plants and mud."),
        "A large dark reptile with a broad rounded snout.",
        is_endangered=False,
    ),
    Animal(
        "red-eyed-tree-frog", "Red-eyed Tree Frog", _R, "rainforest", "🐸", "Agalychnis callidryas",
        Diet.CARNIVORE, "about 5 years", "about 6 cm long",
        ("Red-eyed tree frogs sleep during the day stuck to the underside of leaves.",
         "Their bright red eyes can startle predators."),
        "A bright green frog with huge red eyes and orange feet.",
        is_nocturnal=True,
        is_endangered=False,
    ),
    Animal(
        "galapagos-tortoise", "Galápagos Tortoise", _R, "grasslands", "🐢", "Chelonoidis niger",
        Diet.HERBIVORE, "over 100 years", "up to 1.5 m long",
        ("Galápagos tortoises can live for more than 100 years.",
         "Galápagos tortoises are the largest living tortoises."),
        "A giant slow-moving tortoise with a domed shell.",
        is_nocturnal=False,
    ),
    Animal(
        "thorny-devil", "Thorny Devil", _R, "desert", "🦎", "Moloch horridus", Diet.CARNIVORE, "15-20 years",
        "about 20 cm long",
        ("Thorny devils can drink water through tiny grooves in their skin.", "Thorny devils mostly eat ants."),
        "A small spiky lizard covered in cone-shaped thorns.",
        is_nocturnal=False,
        is_endangered=False,
    ),
    Animal(
        "axolotl", "Axolotl", _R, "wetlands", "🦎", "Ambystoma mexicanum", Diet.CARNIVORE, "10-15 years",
        "about 25 cm long",
        ("Axolotls can regrow lost limbs.", "Axolotls keep their feathery gills as adults."),
        "A smiling pink or brown salamander with frilly gills.",
        is_endangered=True,
    ),
    Animal(
        "king-cobra", "King Cobra", _R, "forest", "🐍", "Ophiophagus hannah", Diet.CARNIVORE, "about 20 years",
        "up to 5.5 m long",
        ("The king cobra is the longest venomous snake in the world.", "King cobras mostly eat other snakes."),
        "A very long venomous snake that spreads a hood when threatened.",
    ),
)

ANIMALS_BY_ID: dict[str, Animal] = {a.id: a for a in ANIMALS}


def animals_in(category: AnimalCategory | str) -> tuple[Animal, ...]:
    return tuple(a for a in ANIMALS if a.category == category)


def category_config(category: AnimalCategory | str) -> CategoryConfig | None:
    for cfg in CATEGORIES:
        if cfg.id == category:
            return cfg
    return None
